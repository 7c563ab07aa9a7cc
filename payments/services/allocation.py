# payments/services/allocation.py
"""
FIFO allocation of a payment across a tenant's rent periods.

Order of settlement:
  1. oldest due date first, never reordered by size or priority
  2. inside a period, the late fee before the rent
  3. money left after every known period spills into newly created future
     periods, at most ``LedgerPolicy.max_future_periods`` per payment
  4. anything still left is handed back as ``remainder``

A payment is allocated at most once. Its allocation rows, the period
updates and the payment summary are written in one store transaction, so
the presence of any allocation row for a payment proves the whole run
committed. Re-running a payment replays those rows instead of allocating
again. The tenant and amount of a request must match the stored payment,
so a replay always reports the same remainder.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from django.utils import timezone

from core.exceptions import PaymentMismatch, PaymentNotFound
from core.utils.money import ZERO, money, parse_amount
from leases import cadence
from payments.store import AllocationRecord, DjangoLedgerStore, LedgerStore, PeriodRecord
from rent.models import RentPeriod
from rent.policy import LedgerPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppliedAllocation:
    period_id: int
    to_late_fee: Decimal
    to_rent: Decimal
    period_due_date: date
    status: str

    @property
    def total(self) -> Decimal:
        return self.to_late_fee + self.to_rent

    def as_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "to_late_fee": self.to_late_fee,
            "to_rent": self.to_rent,
            "period_due_date": self.period_due_date,
            "status": self.status,
        }


@dataclass(frozen=True)
class AllocationOutcome:
    payment_id: int
    applied: List[AppliedAllocation]
    remainder: Decimal
    periods_created: int = field(default=0, compare=False)
    replayed: bool = field(default=False, compare=False)

    @property
    def total_applied(self) -> Decimal:
        return sum((a.total for a in self.applied), ZERO)

    def as_dict(self) -> dict:
        return {
            "applied": [a.as_dict() for a in self.applied],
            "remainder": self.remainder,
        }


@dataclass
class _Line:
    period: PeriodRecord
    to_late_fee: Decimal
    to_rent: Decimal
    status: str


class _AllocationRun:

    def __init__(self, amount: Decimal):
        self.amount = amount
        self.remaining = amount
        self.lines: List[_Line] = []
        self.created = 0

    def take(self, owed: Decimal) -> Decimal:
        portion = min(self.remaining, max(owed, ZERO))
        self.remaining -= portion
        return portion

    def record(self, period: PeriodRecord, to_late_fee: Decimal, to_rent: Decimal):
        paid = period.amount_paid + to_rent
        status = RentPeriod.STATUS_PAID if paid >= period.rent_amount else RentPeriod.STATUS_PARTIAL
        self.lines.append(_Line(period, to_late_fee, to_rent, status))


class PaymentAllocator:
    """
    Allocates payments through an injected ``LedgerStore``.

        allocator = PaymentAllocator(DjangoLedgerStore())
        outcome = allocator.allocate_payment(tenant.pk, payment.pk, "700.00", date(2024, 1, 3))
    """

    def __init__(self, store: LedgerStore, policy: Optional[LedgerPolicy] = None):
        self.store = store
        self.policy = policy or LedgerPolicy.from_settings()

    def allocate_payment(self, tenant_id, payment_id, amount, payment_date) -> AllocationOutcome:
        amount = parse_amount(amount)
        payment_date = _as_date(payment_date)

        with self.store.tenant_scope(tenant_id):
            self._check_payment(tenant_id, payment_id, amount)
            existing = self.store.find_allocations_by_payment(payment_id)
            if existing:
                return self._replay(payment_id, amount, existing)

            self.store.update_payment(payment_id, date_paid=payment_date)

            run = _AllocationRun(amount)
            for period in self.store.find_outstanding_periods(tenant_id):
                if run.remaining <= 0:
                    break
                self._settle(run, period, payment_date)

            if run.remaining > 0:
                self._spill(run, tenant_id)

            self._write(run, payment_id, payment_date)

        outcome = AllocationOutcome(
            payment_id=payment_id,
            applied=[
                AppliedAllocation(
                    period_id=line.period.id,
                    to_late_fee=line.to_late_fee,
                    to_rent=line.to_rent,
                    period_due_date=line.period.period_due_date,
                    status=line.status,
                )
                for line in run.lines
            ],
            remainder=run.remaining,
            periods_created=run.created,
        )
        logger.info(
            f"Payment #{payment_id} (tenant {tenant_id}) allocated {outcome.total_applied} "
            f"across {len(outcome.applied)} period(s), {run.created} created, remainder {outcome.remainder}"
        )
        return outcome

    # ------------------------------------------------------------------

    def _check_payment(self, tenant_id, payment_id, amount: Decimal):
        payment = self.store.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        if str(payment.tenant_id) != str(tenant_id):
            raise PaymentMismatch(f"Payment #{payment_id} belongs to tenant {payment.tenant_id}, not {tenant_id}")
        if payment.amount != amount:
            raise PaymentMismatch(f"Payment #{payment_id} is for {payment.amount}, not {amount}")

    def _settle(self, run: _AllocationRun, period: PeriodRecord, payment_date: date):
        fee_owed = ZERO
        if not period.late_fee_waived and self.policy.is_late(period.effective_due_date, payment_date):
            fee_owed = max(self.policy.late_fee_for(period.rent_cadence) - period.late_fee_applied, ZERO)
        rent_owed = max(period.rent_amount - period.amount_paid, ZERO)

        if fee_owed + rent_owed <= 0:
            # stale read of an already settled period
            return

        to_late_fee = run.take(fee_owed)
        to_rent = run.take(rent_owed)
        run.record(period, to_late_fee, to_rent)

    def _spill(self, run: _AllocationRun, tenant_id):
        anchor = self.store.find_latest_period(tenant_id)
        if anchor is None:
            logger.warning(f"Tenant {tenant_id} has no rent periods to extend; {run.remaining} left unallocated")
            return

        lease = self.store.get_lease(anchor.lease_id)
        rent_amount = lease.rent_amount if lease else anchor.rent_amount
        rent_cadence = cadence.normalize_cadence(lease.rent_cadence if lease else anchor.rent_cadence)
        property_id = lease.property_id if lease else anchor.property_id
        end_date = lease.end_date if lease else None

        if rent_amount <= 0:
            logger.warning(f"Lease #{anchor.lease_id} has no rent to prepay; {run.remaining} left unallocated")
            return

        # new due dates continue the lease schedule; without a lease, step on from the anchor
        if lease and lease.start_date:
            origin = lease.start_date
            first = cadence.schedule_index_after(origin, rent_cadence, anchor.period_due_date)
        else:
            origin, first = anchor.period_due_date, 1

        while run.remaining > 0 and run.created < self.policy.max_future_periods:
            due = cadence.add_cadence_interval(origin, rent_cadence, first + run.created)
            if end_date and due > end_date:
                logger.warning(f"Lease #{anchor.lease_id} ends {end_date}; not creating a period due {due}")
                break
            period = self.store.insert_period(
                tenant_id, property_id, anchor.lease_id, due, rent_amount, rent_cadence)
            run.created += 1
            # a period created for prepayment carries no late fee
            run.record(period, ZERO, run.take(period.rent_amount))
            logger.info(f"Created {rent_cadence} rent period #{period.id} due {due} for tenant {tenant_id}")

        if run.remaining > 0 and run.created >= self.policy.max_future_periods:
            logger.warning(
                f"Future period cap ({self.policy.max_future_periods}) reached for tenant {tenant_id}; "
                f"{run.remaining} returned as remainder"
            )

    def _write(self, run: _AllocationRun, payment_id, payment_date: date):
        for line in run.lines:
            period = line.period
            self.store.update_period(
                period.id,
                amount_paid=period.amount_paid + line.to_rent,
                late_fee_applied=period.late_fee_applied + line.to_late_fee,
                status=line.status,
                expected=(period.amount_paid, period.late_fee_applied),
            )

        self.store.insert_allocations([
            AllocationRecord(
                payment_id=payment_id,
                rent_period_id=line.period.id,
                amount_to_late_fee=line.to_late_fee,
                amount_to_rent=line.to_rent,
                period_status=line.status,
                period_due_date=line.period.period_due_date,
            )
            for line in run.lines
        ])

        summary = {
            "allocations": len(run.lines),
            "total_applied": str(run.amount - run.remaining),
            "remainder": str(run.remaining),
            "periods_created": run.created,
            "payment_date": payment_date.isoformat(),
            "timestamp": timezone.now().isoformat(),
        }
        self.store.update_payment(payment_id, date_paid=payment_date, notes=json.dumps(summary), summary=summary)

    def _replay(self, payment_id, amount: Decimal, existing: List[AllocationRecord]) -> AllocationOutcome:
        applied = [
            AppliedAllocation(
                period_id=row.rent_period_id,
                to_late_fee=money(row.amount_to_late_fee),
                to_rent=money(row.amount_to_rent),
                period_due_date=row.period_due_date,
                status=row.period_status,
            )
            for row in existing
        ]
        allocated = sum((a.total for a in applied), ZERO)
        logger.warning(f"Payment #{payment_id} already allocated ({len(applied)} row(s)); replaying")
        return AllocationOutcome(
            payment_id=payment_id,
            applied=applied,
            remainder=max(amount - allocated, ZERO),
            replayed=True,
        )


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def allocate_payment(tenant_id, payment_id, amount, payment_date,
                     store: Optional[LedgerStore] = None,
                     policy: Optional[LedgerPolicy] = None) -> AllocationOutcome:
    return PaymentAllocator(store or DjangoLedgerStore(), policy).allocate_payment(
        tenant_id, payment_id, amount, payment_date)
