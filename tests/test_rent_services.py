from datetime import date
from decimal import Decimal

import pytest

from leases.models import Lease
from rent.models import RentPeriod
from rent.policy import LedgerPolicy
from rent.services import (
    assess_late_fees, generate_periods_for_active_leases, generate_periods_for_lease,
    resync_periods, status_for, summarize_resync,
)

pytestmark = pytest.mark.django_db


def test_generate_periods_is_idempotent(lease):
    created = generate_periods_for_lease(lease, through=date(2024, 3, 15))

    assert [p.period_due_date for p in created] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
    assert all(p.rent_amount == Decimal("500.00") for p in created)
    assert generate_periods_for_lease(lease, through=date(2024, 3, 15)) == []
    assert RentPeriod.objects.filter(lease=lease).count() == 3


def test_generate_periods_stops_at_lease_end(lease):
    lease.end_date = date(2024, 2, 10)
    lease.save()

    created = generate_periods_for_lease(lease, through=date(2024, 6, 1))

    assert [p.period_due_date for p in created] == [date(2024, 1, 1), date(2024, 2, 1)]


def test_generate_periods_fills_gaps(lease, make_period):
    make_period(date(2024, 2, 1), amount_paid=Decimal("500.00"), status="paid")

    created = generate_periods_for_lease(lease, through=date(2024, 3, 1))

    assert [p.period_due_date for p in created] == [date(2024, 1, 1), date(2024, 3, 1)]


def test_generate_for_active_leases_skips_bad_cadence(lease, tenant, prop):
    broken = Lease.objects.create(
        tenant=tenant, property=prop, start_date=date(2024, 1, 1),
        rent_amount=Decimal("100.00"), rent_cadence="yearly")
    Lease.objects.create(
        tenant=tenant, property=prop, start_date=date(2023, 1, 1),
        rent_amount=Decimal("100.00"), rent_cadence="weekly", status="ended")

    results = generate_periods_for_active_leases(through=date(2024, 1, 31))

    assert results == {lease.pk: 1}
    assert not RentPeriod.objects.filter(lease=broken).exists()


def test_assess_late_fees(make_period):
    late = make_period(date(2024, 1, 1))
    make_period(date(2023, 12, 1), late_fee_waived=True)
    make_period(date(2023, 11, 1), amount_paid=Decimal("500.00"), status="paid")
    make_period(date(2024, 1, 18))
    partly = make_period(date(2023, 10, 1), amount_paid=Decimal("200.00"),
                         late_fee_applied=Decimal("45.00"), status="partial")

    rows = assess_late_fees(as_of=date(2024, 1, 20))

    assert [r.period_id for r in rows] == [partly.pk, late.pk]
    first, second = rows
    assert first.late_fee_outstanding == Decimal("0.00")
    assert first.rent_outstanding == Decimal("300.00")
    assert second.days_late == 14
    assert second.late_fee == Decimal("45.00")
    assert second.total_due == Decimal("545.00")


def test_assess_late_fees_uses_policy_grace(make_period):
    make_period(date(2024, 1, 1))

    assert assess_late_fees(as_of=date(2024, 1, 8), policy=LedgerPolicy(grace_days=10)) == []
    assert len(assess_late_fees(as_of=date(2024, 1, 8), policy=LedgerPolicy(grace_days=2))) == 1


@pytest.mark.parametrize("paid, fee, expected", [
    ("0.00", "0.00", "unpaid"),
    ("0.00", "45.00", "partial"),
    ("10.00", "0.00", "partial"),
    ("500.00", "0.00", "paid"),
    ("600.00", "0.00", "paid"),
])
def test_status_for(paid, fee, expected):
    assert status_for(Decimal(paid), Decimal(fee), Decimal("500.00")) == expected


def test_resync_repairs_drifted_status(make_period):
    drifted = make_period(date(2024, 1, 1), amount_paid=Decimal("500.00"), status="unpaid")
    overpaid = make_period(date(2024, 2, 1), amount_paid=Decimal("600.00"), status="paid")
    late = make_period(date(2024, 3, 1))

    rows = resync_periods(as_of=date(2024, 3, 20))

    by_id = {r.period_id: r for r in rows}
    assert by_id[drifted.pk].changed and by_id[drifted.pk].status == "paid"
    assert by_id[overpaid.pk].note == "overpaid"
    assert by_id[late.pk].note == "late"
    assert by_id[late.pk].remaining_due == Decimal("545.00")
    drifted.refresh_from_db()
    assert drifted.status == "paid"
    assert drifted.amount_paid == Decimal("500.00")

    summary = summarize_resync(rows, date(2024, 3, 20))
    assert summary == {
        "total_periods": 3,
        "changed_count": 1,
        "overpaid_count": 1,
        "total_remaining_due": Decimal("545.00"),
        "as_of_date": "2024-03-20",
    }


def test_resync_dry_run_writes_nothing(make_period):
    drifted = make_period(date(2024, 1, 1), amount_paid=Decimal("200.00"), status="unpaid")

    rows = resync_periods(as_of=date(2024, 1, 2), dry_run=True)

    assert rows[0].status == "partial"
    assert rows[0].note == "current"
    drifted.refresh_from_db()
    assert drifted.status == "unpaid"
