# payments/services/collections.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.db.models import Count, DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from payments.models import Payment


def _total():
    return Coalesce(Sum("amount"), Value(Decimal("0.00")), output_field=DecimalField(max_digits=12, decimal_places=2))


def collected_total(start: date, end: date, tenant=None, property=None) -> dict:
    """
    Money received with ``date_paid`` in [start, end].

    The by-tenant breakdown is only built when not filtering by tenant, and
    the by-property one only when not filtering by property.
    """
    qs = Payment.objects.filter(date_paid__gte=start, date_paid__lte=end)
    if tenant is not None:
        qs = qs.filter(tenant=tenant)
    if property is not None:
        qs = qs.filter(property=property)

    totals = qs.aggregate(total=_total(), count=Count("id"))
    breakdown = {}

    if tenant is None:
        rows = (
            qs.values("tenant_id", "tenant__first_name", "tenant__last_name")
            .annotate(amount=_total(), payment_count=Count("id"))
            .order_by("tenant_id")
        )
        breakdown["by_tenant"] = [
            {
                "tenant_id": r["tenant_id"],
                "tenant_name": f"{r['tenant__first_name']} {r['tenant__last_name']}",
                "amount": r["amount"],
                "payment_count": r["payment_count"],
            }
            for r in rows
        ]

    if property is None:
        rows = (
            qs.values("property_id", "property__property_name")
            .annotate(amount=_total(), payment_count=Count("id"))
            .order_by("property_id")
        )
        breakdown["by_property"] = [
            {
                "property_id": r["property_id"],
                "property_name": r["property__property_name"] or "Unknown Property",
                "amount": r["amount"],
                "payment_count": r["payment_count"],
            }
            for r in rows
        ]

    return {
        "total_collected": totals["total"],
        "payment_count": totals["count"],
        "date_range": {"start": start, "end": end},
        "breakdown": breakdown,
    }
