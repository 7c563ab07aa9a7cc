import builtins
from decimal import Decimal
import logging

from django.core.validators import MinValueValidator
from django.db import models

logger = logging.getLogger(__name__)


class Payment(models.Model):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    lease = models.ForeignKey(
        "leases.Lease",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    date_paid = models.DateField(null=True, blank=True)
    reference_number = models.CharField(max_length=100, blank=True, null=True)
    # JSON allocation summary, denormalized for people reading the payment
    notes = models.TextField(blank=True, null=True)
    allocation_summary = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date_paid", "-id"]

    def __str__(self):
        return f"Payment of {self.amount} by tenant {self.tenant_id} on {self.date_paid}"

    def save(self, *args, **kwargs):
        if self.pk:
            original = Payment.objects.filter(pk=self.pk).values("amount").first()
            if original and original["amount"] != self.amount:
                logger.info(
                    f"Payment #{self.pk} amount changed from {original['amount']} to {self.amount}")
        super().save(*args, **kwargs)

    # `property` names the FK inside this class body
    @builtins.property
    def is_allocated(self):
        return self.allocations.exists()

    @builtins.property
    def allocated_total(self) -> Decimal:
        totals = self.allocations.aggregate(
            fee=models.Sum("amount_to_late_fee"), rent=models.Sum("amount_to_rent"))
        return (totals["fee"] or Decimal("0.00")) + (totals["rent"] or Decimal("0.00"))


class PaymentAllocation(models.Model):
    """
    Write-once link between a payment and one rent period it paid into.

    RULES:
    - At most one row per (payment, rent_period).
    - All rows of a payment are written in the same transaction, so any row
      existing for a payment means the payment is fully allocated.
    """

    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.PROTECT,
        related_name="allocations",
    )
    rent_period = models.ForeignKey(
        "rent.RentPeriod",
        on_delete=models.PROTECT,
        related_name="allocations",
    )
    amount_to_late_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    amount_to_rent = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    # status the allocation left the period in
    period_status = models.CharField(max_length=10, blank=True, default="")
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["payment", "rent_period"], name="uniq_allocation_per_payment_period"),
        ]

    def __str__(self):
        return f"Allocation #{self.pk} Payment #{self.payment_id} -> Period #{self.rent_period_id}"
