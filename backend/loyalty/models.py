from django.db import models
from django.db.models import Q


class LoyaltyBalance(models.Model):
    """
    One point counter per customer. The balance is only ever changed by
    filtered UPDATE statements in LoyaltyLedger.
    """

    customer = models.OneToOneField(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="loyalty_balance",
    )
    balance = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Loyalty Balance"
        verbose_name_plural = "Loyalty Balances"
        constraints = [
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="loyalty_balance_not_negative",
            ),
        ]

    def __str__(self):
        return f"{self.customer_id}: {self.balance} pts"
