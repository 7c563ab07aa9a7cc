from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from properties.models import Property
from tenants.models import Tenant

from .cadence import CADENCE_CHOICES, MONTHLY


class Lease(models.Model):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("ended", "Ended"),
        ("terminated", "Terminated"),
    ]

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="leases")
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="leases")
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    rent_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    # free text on purpose: legacy rows carry spellings outside the choices
    rent_cadence = models.CharField(max_length=20, choices=CADENCE_CHOICES, default=MONTHLY)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self):
        return f"Lease #{self.pk} {self.tenant} @ {self.property}"
