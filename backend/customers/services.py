import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError

from .exceptions import CustomerNotFoundError
from .models import Customer, CustomerAddress

logger = logging.getLogger(__name__)


class CustomerService:
    """Lookups the order engine needs from the customer directory."""

    @staticmethod
    def get_active_customer(customer_id) -> Customer:
        try:
            return Customer.objects.get(id=customer_id, is_active=True)
        except (Customer.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise CustomerNotFoundError(
                f"Customer {customer_id} not found",
                details={"customer_id": str(customer_id)},
            )

    @staticmethod
    def resolve_delivery_address(customer: Customer, address_id):
        """
        Returns the address when it belongs to the customer, otherwise None.
        Callers decide how to report a missing address.
        """
        if not address_id:
            return None
        try:
            return CustomerAddress.objects.get(id=address_id, customer=customer)
        except (CustomerAddress.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            logger.info(f"Address {address_id} does not belong to customer {customer.id}")
            return None

    @staticmethod
    def for_user(user) -> Optional[Customer]:
        """
        The customer record a signed-in user acts as, matched on email.
        Staff accounts usually have none.
        """
        email = (getattr(user, "email", "") or "").strip()
        if not email:
            return None
        return Customer.objects.filter(email__iexact=email, is_active=True).first()

    @classmethod
    def owns(cls, user, customer_id) -> bool:
        customer = cls.for_user(user)
        return customer is not None and str(customer.id) == str(customer_id)
