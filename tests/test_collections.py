from datetime import date
from decimal import Decimal

import pytest

from payments.services.collections import collected_total

pytestmark = pytest.mark.django_db


def test_collected_total(tenant, other_tenant, lease, make_payment):
    make_payment("500.00", date_paid=date(2024, 1, 2))
    make_payment("250.00", date_paid=date(2024, 1, 31))
    make_payment("100.00", date_paid=date(2024, 1, 15), tenant=other_tenant, lease=None, property_id=None)
    make_payment("999.00", date_paid=date(2024, 2, 1))

    report = collected_total(date(2024, 1, 1), date(2024, 1, 31))

    assert report["total_collected"] == Decimal("850.00")
    assert report["payment_count"] == 3
    by_tenant = {r["tenant_id"]: r for r in report["breakdown"]["by_tenant"]}
    assert by_tenant[tenant.pk]["amount"] == Decimal("750.00")
    assert by_tenant[tenant.pk]["tenant_name"] == "Ada Okafor"
    names = {r["property_name"] for r in report["breakdown"]["by_property"]}
    assert names == {"Maple Court", "Unknown Property"}


def test_collected_total_for_one_tenant(tenant, make_payment):
    make_payment("500.00", date_paid=date(2024, 1, 2))

    report = collected_total(date(2024, 1, 1), date(2024, 1, 31), tenant=tenant)

    assert report["total_collected"] == Decimal("500.00")
    assert "by_tenant" not in report["breakdown"]
    assert len(report["breakdown"]["by_property"]) == 1


def test_collected_total_empty_range(db):
    report = collected_total(date(2024, 1, 1), date(2024, 1, 31))

    assert report["total_collected"] == Decimal("0.00")
    assert report["payment_count"] == 0
