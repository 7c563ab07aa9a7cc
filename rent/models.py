import builtins
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from leases.cadence import CADENCE_CHOICES, MONTHLY


class RentPeriod(models.Model):
    """
    One billing cycle of a lease.

    Periods are never deleted. Once created only ``amount_paid``,
    ``late_fee_applied`` and ``status`` move, and the two amounts only grow.
    ``rent_amount`` is frozen at creation; later lease rent changes do not
    touch existing periods.
    """

    STATUS_UNPAID = "unpaid"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"

    STATUS_CHOICES = (
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partial"),
        (STATUS_PAID, "Paid"),
    )
    OUTSTANDING = (STATUS_UNPAID, STATUS_PARTIAL)

    tenant = models.ForeignKey(
        "tenants.Tenant", on_delete=models.PROTECT, related_name="rent_periods")
    property = models.ForeignKey(
        "properties.Property", on_delete=models.PROTECT, related_name="rent_periods")
    lease = models.ForeignKey(
        "leases.Lease", on_delete=models.PROTECT, related_name="rent_periods")

    period_due_date = models.DateField()
    due_date_override = models.DateField(null=True, blank=True)
    rent_amount = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    rent_cadence = models.CharField(max_length=20, choices=CADENCE_CHOICES, default=MONTHLY)

    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_UNPAID, db_index=True)
    amount_paid = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"))
    late_fee_applied = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"))
    late_fee_waived = models.BooleanField(default=False)

    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["period_due_date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["lease", "period_due_date"], name="uniq_rent_period_per_lease_due_date"),
        ]
        indexes = [
            models.Index(fields=["tenant", "status", "period_due_date"], name="rent_period_tenant_status_idx"),
        ]

    def __str__(self):
        return f"Rent {self.period_due_date} ({self.rent_cadence}) - {self.tenant_id} [{self.status}]"

    # `property` names the FK inside this class body
    @builtins.property
    def effective_due_date(self):
        return self.due_date_override or self.period_due_date

    @builtins.property
    def rent_outstanding(self) -> Decimal:
        return max((self.rent_amount or Decimal("0")) - (self.amount_paid or Decimal("0")), Decimal("0.00"))
