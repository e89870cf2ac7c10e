"""
Customer models - identity reference and delivery addresses for orders.
"""
from django.db import models
from django.core.validators import EmailValidator
import uuid


class CustomerManager(models.Manager):
    """Custom manager for Customer model"""

    def normalize_email(self, email):
        """Normalize email address"""
        if email:
            email = email.strip().lower()
        return email

    def create_customer(self, email, **extra_fields):
        """Create and return a customer with a normalized email"""
        if not email:
            raise ValueError('Email is required')
        customer = self.model(email=self.normalize_email(email), **extra_fields)
        customer.save(using=self._db)
        return customer


class Customer(models.Model):
    """
    A customer who places delivery orders. Authentication lives outside the
    engine; orders only need a stable identity and contact details.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(
        unique=True,
        validators=[EmailValidator()],
        help_text="Customer's primary email address"
    )
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        help_text="Customer's phone number"
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the customer account is active"
    )

    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomerManager()

    class Meta:
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'
        indexes = [
            models.Index(fields=['email'], name='customer_email_idx'),
            models.Index(fields=['phone_number'], name='customer_phone_idx'),
        ]

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        """Return first_name plus last_name, with space in between"""
        full_name = f'{self.first_name} {self.last_name}'.strip()
        return full_name if full_name else self.email.split('@')[0]


class CustomerAddress(models.Model):
    """A delivery address owned by a customer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name='addresses'
    )
    is_default = models.BooleanField(default=False)

    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    landmark = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Customer Address'
        verbose_name_plural = 'Customer Addresses'
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return self.one_line()

    def one_line(self):
        """Address formatted on a single line for notifications."""
        parts = [self.address_line1, self.address_line2, self.city]
        line = ", ".join(part for part in parts if part)
        return f"{line}, {self.state} {self.postal_code}".strip()
