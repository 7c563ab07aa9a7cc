# rent/services.py
"""
Portfolio-wide rent period jobs: generating periods from lease terms,
assessing late-fee liability and resyncing period status. All of them use
the same cadence rules and ``LedgerPolicy`` as payment allocation, so a
period the allocator treats as late is reported late here too.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from core.exceptions import UnsupportedCadence
from core.utils.money import ZERO, money
from leases import cadence

from .models import RentPeriod
from .policy import LedgerPolicy

logger = logging.getLogger(__name__)


# ---------- period generation ----------

@transaction.atomic
def generate_periods_for_lease(lease, through: Optional[date] = None) -> List[RentPeriod]:
    """
    Create the lease's missing periods with due dates from ``start_date``
    up to ``through`` (default today), never past ``end_date``.

    Existing due dates are left alone, so running it twice creates nothing
    the second time. Raises UnsupportedCadence for a malformed lease cadence.
    """
    through = through or timezone.localdate()
    if lease.end_date and lease.end_date < through:
        through = lease.end_date

    rent_cadence = cadence.normalize_cadence(lease.rent_cadence)
    existing = set(
        RentPeriod.objects.filter(lease=lease).values_list("period_due_date", flat=True)
    )

    new_periods = [
        RentPeriod(
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            lease=lease,
            period_due_date=due,
            rent_amount=money(lease.rent_amount),
            rent_cadence=rent_cadence,
            status=RentPeriod.STATUS_UNPAID,
        )
        for due in cadence.iter_due_dates(lease.start_date, rent_cadence, through)
        if due not in existing
    ]
    created = RentPeriod.objects.bulk_create(new_periods)
    if created:
        logger.info(f"Lease #{lease.pk}: generated {len(created)} {rent_cadence} period(s) through {through}")
    return created


def generate_periods_for_active_leases(through: Optional[date] = None) -> Dict[int, int]:
    """Per-lease count of periods created. One lease failing does not stop the rest."""
    from leases.models import Lease

    results = {}
    for lease in Lease.objects.filter(status="active").order_by("id"):
        try:
            results[lease.pk] = len(generate_periods_for_lease(lease, through=through))
        except UnsupportedCadence as exc:
            logger.error(f"Lease #{lease.pk} skipped: {exc}")
    return results


# ---------- late fee assessment ----------

@dataclass(frozen=True)
class LateFeeAssessment:
    period_id: int
    tenant_id: int
    lease_id: int
    period_due_date: date
    days_late: int
    late_fee: Decimal
    late_fee_outstanding: Decimal
    rent_outstanding: Decimal

    @property
    def total_due(self) -> Decimal:
        return self.late_fee_outstanding + self.rent_outstanding


def _outstanding(tenant=None, lease=None):
    qs = RentPeriod.objects.filter(status__in=RentPeriod.OUTSTANDING)
    if tenant is not None:
        qs = qs.filter(tenant=tenant)
    if lease is not None:
        qs = qs.filter(lease=lease)
    return qs.order_by("period_due_date", "id")


def assess_late_fees(as_of: Optional[date] = None, lease=None, tenant=None,
                     policy: Optional[LedgerPolicy] = None) -> List[LateFeeAssessment]:
    """
    Late-fee liability of every outstanding, non-waived period that is past
    its grace window on ``as_of``. Read-only: fees are collected when a
    payment is allocated, not posted here.
    """
    as_of = as_of or timezone.localdate()
    policy = policy or LedgerPolicy.from_settings()

    rows = []
    for period in _outstanding(tenant=tenant, lease=lease):
        if period.late_fee_waived or not policy.is_late(period.effective_due_date, as_of):
            continue
        fee = policy.late_fee_for(period.rent_cadence)
        rows.append(LateFeeAssessment(
            period_id=period.pk,
            tenant_id=period.tenant_id,
            lease_id=period.lease_id,
            period_due_date=period.period_due_date,
            days_late=policy.days_late(period.effective_due_date, as_of),
            late_fee=fee,
            late_fee_outstanding=max(fee - money(period.late_fee_applied), ZERO),
            rent_outstanding=money(period.rent_outstanding),
        ))
    logger.info(f"Assessed {len(rows)} late period(s) as of {as_of}")
    return rows


# ---------- resync ----------

@dataclass(frozen=True)
class ResyncRow:
    period_id: int
    tenant_id: int
    period_due_date: date
    previous_status: str
    status: str
    remaining_due: Decimal
    days_late: int
    note: str

    @property
    def changed(self):
        return self.previous_status != self.status


def status_for(amount_paid: Decimal, late_fee_applied: Decimal, rent_amount: Decimal) -> str:
    if amount_paid >= rent_amount:
        return RentPeriod.STATUS_PAID
    if amount_paid > 0 or late_fee_applied > 0:
        return RentPeriod.STATUS_PARTIAL
    return RentPeriod.STATUS_UNPAID


@transaction.atomic
def resync_periods(as_of: Optional[date] = None, tenant=None, dry_run: bool = False,
                   policy: Optional[LedgerPolicy] = None) -> List[ResyncRow]:
    """
    Recompute every period's status from its amounts and repair the ones
    that drifted. Amounts are never touched.
    """
    as_of = as_of or timezone.localdate()
    policy = policy or LedgerPolicy.from_settings()

    qs = RentPeriod.objects.select_for_update().order_by("period_due_date", "id")
    if tenant is not None:
        qs = qs.filter(tenant=tenant)

    rows = []
    for period in qs:
        rent_amount = money(period.rent_amount)
        amount_paid = money(period.amount_paid)
        late_fee_applied = money(period.late_fee_applied)
        status = status_for(amount_paid, late_fee_applied, rent_amount)

        late = (
            status != RentPeriod.STATUS_PAID
            and not period.late_fee_waived
            and policy.is_late(period.effective_due_date, as_of)
        )
        remaining = max(rent_amount - amount_paid, ZERO)
        if late:
            remaining += max(policy.late_fee_for(period.rent_cadence) - late_fee_applied, ZERO)

        if amount_paid > rent_amount:
            note = "overpaid"
        elif status == RentPeriod.STATUS_PAID:
            note = "paid"
        elif late:
            note = "late"
        else:
            note = "current"

        row = ResyncRow(
            period_id=period.pk,
            tenant_id=period.tenant_id,
            period_due_date=period.period_due_date,
            previous_status=period.status,
            status=status,
            remaining_due=remaining,
            days_late=policy.days_late(period.effective_due_date, as_of) if late else 0,
            note=note,
        )
        rows.append(row)

        if row.changed and not dry_run:
            RentPeriod.objects.filter(pk=period.pk).update(status=status, updated_at=timezone.now())
            logger.info(f"Rent period #{period.pk} status {row.previous_status} -> {status}")

    return rows


def summarize_resync(rows: List[ResyncRow], as_of: date) -> dict:
    return {
        "total_periods": len(rows),
        "changed_count": sum(1 for r in rows if r.changed),
        "overpaid_count": sum(1 for r in rows if r.note == "overpaid"),
        "total_remaining_due": sum((r.remaining_due for r in rows), ZERO),
        "as_of_date": as_of.isoformat(),
    }
