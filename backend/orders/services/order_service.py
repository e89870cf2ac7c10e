import logging
from typing import Any, Dict, Iterable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core_backend.config import engine_settings
from customers.services import CustomerService
from loyalty.services import LoyaltyLedger
from offers.models import Offer
from offers.services import OfferValidator

from ..calculators import OrderCalculator
from ..events import OrderEventPublisher
from ..exceptions import (
    InvalidOrderRequest,
    InvalidTransition,
    OrderNotFound,
    OrderNotPayable,
    StaleOrderStatus,
)
from ..models import Order, OrderItem, OrderTracking

logger = logging.getLogger(__name__)


class OrderService:
    """
    Owns the order lifecycle. Every status change goes through this class.

    Transitions lock the order row, check the transition table, apply side
    effects (offer usage, loyalty) and write the new status with a
    compare-and-set on the status that was read. Events are published only
    after the surrounding transaction commits.
    """

    # Valid status transitions for order state machine
    VALID_STATUS_TRANSITIONS = {
        Order.Status.PENDING: [
            Order.Status.CONFIRMED,
            Order.Status.CANCELLED,
        ],
        Order.Status.CONFIRMED: [
            Order.Status.PREPARING,
            Order.Status.CANCELLED,
        ],
        Order.Status.PREPARING: [Order.Status.READY],
        Order.Status.READY: [Order.Status.OUT_FOR_DELIVERY],
        Order.Status.OUT_FOR_DELIVERY: [Order.Status.DELIVERED],
        Order.Status.DELIVERED: [],
        Order.Status.CANCELLED: [],
    }

    STATUS_MESSAGES = {
        Order.Status.PENDING: "Order has been placed and is awaiting confirmation",
        Order.Status.CONFIRMED: "Order has been confirmed and sent to kitchen",
        Order.Status.PREPARING: "Your order is being prepared",
        Order.Status.READY: "Order is ready for pickup/delivery",
        Order.Status.OUT_FOR_DELIVERY: "Order is out for delivery",
        Order.Status.DELIVERED: "Order has been delivered successfully",
        Order.Status.CANCELLED: "Order has been cancelled",
    }

    # --- Lookups ---

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.select_related("customer", "delivery_address", "offer").get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise OrderNotFound(order_id)

    @staticmethod
    def _lock(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise OrderNotFound(order_id)

    @staticmethod
    def get_tracking(order_id):
        """Audit trail for an order, oldest first."""
        order = OrderService.get_order(order_id)
        return order.tracking.all().order_by("created_at", "id")

    # --- Creation ---

    @classmethod
    def create_order(
        cls,
        customer_id,
        items: Iterable[Dict[str, Any]],
        delivery_address_id,
        notes: Optional[str] = None,
        offer_id=None,
        loyalty_points: int = 0,
        idempotency_key: Optional[str] = None,
        calculator: Optional[OrderCalculator] = None,
    ) -> Order:
        """
        Prices and persists a new order in `pending`.

        Catalog prices are snapshotted into the order items. When loyalty
        points are supplied they are debited in the same transaction, after
        the order rows are written, so a failed debit leaves nothing behind.
        A repeated call with the same idempotency_key returns the original
        order.
        """
        if idempotency_key:
            existing = cls._find_by_idempotency_key(idempotency_key, customer_id)
            if existing is not None:
                return existing

        customer = CustomerService.get_active_customer(customer_id)
        address = CustomerService.resolve_delivery_address(customer, delivery_address_id)
        if address is None:
            raise InvalidOrderRequest(
                "A valid delivery address is required",
                details={"delivery_address_id": "Address not found for this customer."},
            )

        calculator = calculator or OrderCalculator()
        lines = calculator.snapshot_line_items(items)

        offer = None
        audience = Offer.Audience.ALL
        if offer_id:
            offer = OfferValidator.get_offer(offer_id)
            audience = OfferValidator.audience_for_customer(customer.id)

        loyalty_quote = LoyaltyLedger.quote(loyalty_points or 0)
        breakdown = calculator.calculate(
            lines,
            offer=offer,
            audience=audience,
            loyalty_discount=loyalty_quote.discount_granted,
        )

        try:
            with transaction.atomic():
                order = Order(
                    customer=customer,
                    delivery_address=address,
                    customer_notes=notes or "",
                    offer=offer,
                    subtotal=breakdown.subtotal,
                    tax=breakdown.tax,
                    delivery_fee=breakdown.delivery_fee,
                    discount=breakdown.discount,
                    total=breakdown.total,
                    loyalty_points_redeemed=loyalty_quote.points_consumed,
                    estimated_delivery_time=timezone.now() + engine_settings.estimated_delivery_window,
                    idempotency_key=idempotency_key or None,
                )
                order.save()

                OrderItem.objects.bulk_create(
                    [
                        OrderItem(
                            order=order,
                            menu_item=line.menu_item,
                            item_name=line.item_name,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                            special_instructions=line.special_instructions,
                        )
                        for line in lines
                    ]
                )

                if loyalty_points:
                    LoyaltyLedger.redeem(customer.id, loyalty_points)

                cls._append_tracking(
                    order,
                    Order.Status.PENDING,
                    metadata={"pricing": breakdown.as_dict()},
                )
                OrderEventPublisher.order_created(order)
        except IntegrityError:
            if idempotency_key:
                existing = cls._find_by_idempotency_key(idempotency_key, customer_id)
                if existing is not None:
                    logger.info(f"Concurrent create resolved to existing order {existing.order_number}")
                    return existing
            raise

        logger.info(
            f"Created order {order.order_number} for customer {customer.id}: "
            f"subtotal={order.subtotal} discount={order.discount} total={order.total}"
        )
        return order

    @staticmethod
    def _find_by_idempotency_key(idempotency_key, customer_id) -> Optional[Order]:
        existing = Order.objects.filter(idempotency_key=idempotency_key).first()
        if existing is None:
            return None
        if str(existing.customer_id) != str(customer_id):
            raise InvalidOrderRequest(
                "Idempotency key already used by another customer",
                details={"idempotency_key": "This key has already been used."},
            )
        logger.info(f"Idempotent replay of order {existing.order_number}")
        return existing

    # --- Transitions ---

    @classmethod
    def confirm(cls, order_id, payment_status: Optional[str] = None, notes: Optional[str] = None) -> Order:
        """
        pending -> confirmed. Idempotent when the order is already confirmed.

        Claims one unit of the applied offer's usage budget exactly once per
        order. If the budget is exhausted UsageLimitReached propagates and the
        order stays pending.
        """
        with transaction.atomic():
            order = cls._lock(order_id)

            if order.status == Order.Status.CONFIRMED:
                if payment_status and order.payment_status != payment_status:
                    cls._write(order, order.status, payment_status=payment_status)
                return order

            cls._check_transition(order, Order.Status.CONFIRMED)

            extra = {}
            if payment_status:
                extra["payment_status"] = payment_status
            if order.offer_id and not order.offer_usage_claimed:
                OfferValidator.claim_usage(order.offer_id)
                extra["offer_usage_claimed"] = True

            return cls._transition(order, Order.Status.CONFIRMED, notes=notes, **extra)

    @classmethod
    def advance_status(cls, order_id, new_status: str, notes: Optional[str] = None) -> Order:
        """
        Staff-driven forward move. Steps must follow the transition table one
        at a time; delivered stamps the actual delivery time.
        """
        if new_status not in Order.Status.values:
            raise InvalidOrderRequest(
                f"'{new_status}' is not a valid order status",
                details={"status": f"Must be one of: {', '.join(Order.Status.values)}"},
            )
        if new_status == Order.Status.CONFIRMED:
            return cls.confirm(order_id, notes=notes)
        if new_status == Order.Status.CANCELLED:
            return cls.cancel_order(order_id, reason=notes)

        with transaction.atomic():
            order = cls._lock(order_id)
            cls._check_transition(order, new_status)

            extra = {}
            if new_status == Order.Status.DELIVERED:
                extra["actual_delivery_time"] = timezone.now()

            return cls._transition(order, new_status, notes=notes, **extra)

    @classmethod
    def cancel_order(
        cls,
        order_id,
        reason: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
    ) -> Order:
        """
        Cancels a pending or confirmed order.

        Releases claimed offer usage when OFFER_USAGE_RELEASE_ON_CANCEL is set
        and gives back redeemed loyalty points. A payment that was already
        captured is refunded once the cancellation commits.
        """
        with transaction.atomic():
            order = cls._lock(order_id)
            cls._check_transition(order, Order.Status.CANCELLED)

            reason = reason or "Cancelled"
            extra = {"cancellation_reason": reason[:255]}
            metadata = {"reason": reason}
            if payment_status:
                extra["payment_status"] = payment_status

            if order.offer_usage_claimed and engine_settings.OFFER_USAGE_RELEASE_ON_CANCEL:
                OfferValidator.release_usage(order.offer_id)
                extra["offer_usage_claimed"] = False
                metadata["offer_usage_released"] = True

            if order.loyalty_points_redeemed:
                LoyaltyLedger.restore(order.customer_id, order.loyalty_points_redeemed)
                metadata["loyalty_points_restored"] = order.loyalty_points_redeemed
                extra["loyalty_points_redeemed"] = 0

            refund_intent_id = None
            if (payment_status or order.payment_status) == Order.PaymentStatus.COMPLETED:
                refund_intent_id = payment_intent_id or order.payment_intent_id
                if refund_intent_id:
                    extra["payment_intent_id"] = refund_intent_id
                    metadata["refund_scheduled"] = True
                else:
                    logger.error(
                        f"Order {order.order_number} was paid but has no payment intent to refund"
                    )

            order = cls._transition(
                order,
                Order.Status.CANCELLED,
                message=f"Order has been cancelled: {reason}",
                metadata=metadata,
                **extra,
            )
            if refund_intent_id:
                cls._schedule_refund(order, refund_intent_id)
            return order

    # --- Payment bookkeeping ---

    @classmethod
    def attach_payment_intent(cls, order_id, payment_intent_id: str) -> Order:
        with transaction.atomic():
            order = cls._lock(order_id)
            if order.status != Order.Status.PENDING or order.payment_status != Order.PaymentStatus.PENDING:
                raise OrderNotPayable(
                    f"Order {order.order_number} is not awaiting payment",
                    details={"status": order.status, "payment_status": order.payment_status},
                )
            order.payment_intent_id = payment_intent_id
            order.save(update_fields=["payment_intent_id", "updated_at"])
            logger.info(f"Attached payment intent {payment_intent_id} to order {order.order_number}")
            return order

    @classmethod
    def update_payment_status(cls, order_id, payment_status: str, message: Optional[str] = None) -> Order:
        """Changes only the payment status and records it on the audit trail."""
        with transaction.atomic():
            order = cls._lock(order_id)
            if order.payment_status == payment_status:
                return order
            previous = order.payment_status
            cls._write(order, order.status, payment_status=payment_status)
            cls._append_tracking(
                order,
                order.status,
                message=message or f"Payment {payment_status}",
                metadata={"payment_status": payment_status, "previous_payment_status": previous},
            )
            return order

    # --- Internals ---

    @classmethod
    def _check_transition(cls, order: Order, new_status: str):
        if new_status not in cls.VALID_STATUS_TRANSITIONS.get(order.status, []):
            raise InvalidTransition(order.status, new_status)

    @staticmethod
    def _write(order: Order, expected_status: str, **fields) -> None:
        """
        Compare-and-set write: succeeds only if the stored status still equals
        the status this caller read.
        """
        fields["updated_at"] = timezone.now()
        updated = Order.objects.filter(pk=order.pk, status=expected_status).update(**fields)
        if not updated:
            raise StaleOrderStatus(
                f"Order {order.order_number} changed status concurrently",
                details={"order_id": str(order.pk), "expected_status": expected_status},
            )
        for name, value in fields.items():
            setattr(order, name, value)

    @classmethod
    def _transition(
        cls,
        order: Order,
        new_status: str,
        notes: Optional[str] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **fields,
    ) -> Order:
        old_status = order.status
        cls._write(order, old_status, status=new_status, **fields)

        metadata = dict(metadata or {})
        metadata["previous_status"] = old_status
        if notes:
            metadata["notes"] = notes
        cls._append_tracking(order, new_status, message=message, metadata=metadata)

        OrderEventPublisher.order_status_changed(order, old_status, new_status)
        logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")
        return order

    @classmethod
    def _append_tracking(
        cls,
        order: Order,
        status: str,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OrderTracking:
        return OrderTracking.objects.create(
            order=order,
            status=status,
            message=message or cls.STATUS_MESSAGES.get(status, f"Order status updated to {status}"),
            metadata=metadata or {},
        )

    @staticmethod
    def _schedule_refund(order: Order, payment_intent_id: str) -> None:
        from payments.tasks import refund_order_payment

        order_id = str(order.id)
        logger.info(f"Scheduling refund of {payment_intent_id} for cancelled order {order.order_number}")
        transaction.on_commit(lambda: refund_order_payment.delay(order_id, payment_intent_id))
