# payments/store.py
"""
Persistence boundary of the rent ledger.

The allocation engine only talks to a ``LedgerStore``. ``DjangoLedgerStore``
backs it with the ORM; tests can pass any other implementation. Records
crossing the boundary are plain dataclasses, never model instances, so the
engine cannot lazily hit the database behind the store's back.
"""
from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from django.db import DEFAULT_DB_ALIAS, IntegrityError, InterfaceError, OperationalError, transaction
from django.utils import timezone

from core.exceptions import ConcurrentModification, PaymentNotFound, StoreUnavailable
from core.utils.money import money

logger = logging.getLogger(__name__)


@dataclass
class PeriodRecord:
    id: int
    tenant_id: int
    property_id: int
    lease_id: int
    period_due_date: date
    rent_amount: Decimal
    rent_cadence: str
    status: str
    amount_paid: Decimal
    late_fee_applied: Decimal
    late_fee_waived: bool = False
    due_date_override: Optional[date] = None
    notes: Optional[str] = None

    @property
    def effective_due_date(self) -> date:
        return self.due_date_override or self.period_due_date


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    tenant_id: int
    amount: Decimal
    date_paid: Optional[date] = None


@dataclass(frozen=True)
class LeaseTerms:
    id: int
    tenant_id: int
    property_id: int
    rent_amount: Decimal
    rent_cadence: str
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class AllocationRecord:
    payment_id: int
    rent_period_id: int
    amount_to_late_fee: Decimal
    amount_to_rent: Decimal
    period_status: str
    period_due_date: Optional[date] = None
    applied_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def total(self) -> Decimal:
        return self.amount_to_late_fee + self.amount_to_rent


class LedgerStore(ABC):
    """
    Operations the allocation engine needs from persistence.

    Every call made inside ``tenant_scope`` must commit or roll back
    together, and two scopes for the same tenant must not overlap.
    """

    @abstractmethod
    def tenant_scope(self, tenant_id):
        """Context manager: one transaction, exclusive per tenant."""

    @abstractmethod
    def get_payment(self, payment_id) -> Optional[PaymentRecord]:
        ...

    @abstractmethod
    def find_allocations_by_payment(self, payment_id) -> List[AllocationRecord]:
        ...

    @abstractmethod
    def find_outstanding_periods(self, tenant_id) -> List[PeriodRecord]:
        """Unpaid and partial periods, oldest due date first."""

    @abstractmethod
    def find_latest_period(self, tenant_id) -> Optional[PeriodRecord]:
        ...

    @abstractmethod
    def get_lease(self, lease_id) -> Optional[LeaseTerms]:
        ...

    @abstractmethod
    def update_period(self, period_id, amount_paid: Decimal, late_fee_applied: Decimal, status: str,
                      expected: Optional[Tuple[Decimal, Decimal]] = None) -> None:
        ...

    @abstractmethod
    def insert_period(self, tenant_id, property_id, lease_id, due_date: date,
                      rent_amount: Decimal, cadence: str) -> PeriodRecord:
        ...

    @abstractmethod
    def insert_allocations(self, allocations: Iterable[AllocationRecord]) -> None:
        ...

    @abstractmethod
    def update_payment(self, payment_id, date_paid: date, notes: Optional[str] = None,
                       summary: Optional[dict] = None) -> None:
        ...


def _translate_db_errors(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except IntegrityError as exc:
            logger.exception(f"Ledger store conflict in {func.__name__}")
            raise ConcurrentModification(str(exc)) from exc
        except (OperationalError, InterfaceError) as exc:
            logger.exception(f"Ledger store unavailable in {func.__name__}")
            raise StoreUnavailable(str(exc)) from exc
    return wrapper


def period_record(obj) -> PeriodRecord:
    return PeriodRecord(
        id=obj.pk,
        tenant_id=obj.tenant_id,
        property_id=obj.property_id,
        lease_id=obj.lease_id,
        period_due_date=obj.period_due_date,
        rent_amount=money(obj.rent_amount),
        rent_cadence=obj.rent_cadence,
        status=obj.status,
        amount_paid=money(obj.amount_paid),
        late_fee_applied=money(obj.late_fee_applied),
        late_fee_waived=bool(obj.late_fee_waived),
        due_date_override=obj.due_date_override,
        notes=obj.notes,
    )


class DjangoLedgerStore(LedgerStore):

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @contextmanager
    def tenant_scope(self, tenant_id):
        from tenants.models import Tenant

        try:
            with transaction.atomic(using=self.using):
                # row lock on the tenant serializes allocation runs per tenant
                list(
                    Tenant.objects.using(self.using)
                    .select_for_update()
                    .filter(pk=tenant_id)
                    .values_list("pk", flat=True)
                )
                yield self
        except (OperationalError, InterfaceError) as exc:
            logger.exception(f"Ledger transaction for tenant {tenant_id} failed")
            raise StoreUnavailable(str(exc)) from exc

    @_translate_db_errors
    def get_payment(self, payment_id) -> Optional[PaymentRecord]:
        from payments.models import Payment

        payment = Payment.objects.using(self.using).filter(pk=payment_id).first()
        if not payment:
            return None
        return PaymentRecord(
            id=payment.pk,
            tenant_id=payment.tenant_id,
            amount=money(payment.amount),
            date_paid=payment.date_paid,
        )

    @_translate_db_errors
    def find_allocations_by_payment(self, payment_id) -> List[AllocationRecord]:
        from payments.models import PaymentAllocation

        rows = (
            PaymentAllocation.objects.using(self.using)
            .filter(payment_id=payment_id)
            .select_related("rent_period")
            .order_by("id")
        )
        return [
            AllocationRecord(
                payment_id=row.payment_id,
                rent_period_id=row.rent_period_id,
                amount_to_late_fee=money(row.amount_to_late_fee),
                amount_to_rent=money(row.amount_to_rent),
                period_status=row.period_status or row.rent_period.status,
                period_due_date=row.rent_period.period_due_date,
                applied_at=row.applied_at,
                id=row.pk,
            )
            for row in rows
        ]

    @_translate_db_errors
    def find_outstanding_periods(self, tenant_id) -> List[PeriodRecord]:
        from rent.models import RentPeriod

        qs = (
            RentPeriod.objects.using(self.using)
            .filter(tenant_id=tenant_id, status__in=RentPeriod.OUTSTANDING)
            .order_by("period_due_date", "id")
        )
        return [period_record(p) for p in qs]

    @_translate_db_errors
    def find_latest_period(self, tenant_id) -> Optional[PeriodRecord]:
        from rent.models import RentPeriod

        latest = (
            RentPeriod.objects.using(self.using)
            .filter(tenant_id=tenant_id)
            .order_by("-period_due_date", "-id")
            .first()
        )
        return period_record(latest) if latest else None

    @_translate_db_errors
    def get_lease(self, lease_id) -> Optional[LeaseTerms]:
        from leases.models import Lease

        lease = Lease.objects.using(self.using).filter(pk=lease_id).first()
        if not lease:
            return None
        return LeaseTerms(
            id=lease.pk,
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            rent_amount=money(lease.rent_amount),
            rent_cadence=lease.rent_cadence,
            status=lease.status,
            start_date=lease.start_date,
            end_date=lease.end_date,
        )

    @_translate_db_errors
    def update_period(self, period_id, amount_paid, late_fee_applied, status, expected=None) -> None:
        from rent.models import RentPeriod

        qs = RentPeriod.objects.using(self.using).filter(pk=period_id)
        if expected is not None:
            # optimistic guard: the row must still hold what we read
            qs = qs.filter(amount_paid=expected[0], late_fee_applied=expected[1])
        updated = qs.update(
            amount_paid=amount_paid,
            late_fee_applied=late_fee_applied,
            status=status,
            updated_at=timezone.now(),
        )
        if updated != 1:
            raise ConcurrentModification(f"Rent period #{period_id} changed during allocation")

    @_translate_db_errors
    def insert_period(self, tenant_id, property_id, lease_id, due_date, rent_amount, cadence) -> PeriodRecord:
        from rent.models import RentPeriod

        period = RentPeriod.objects.using(self.using).create(
            tenant_id=tenant_id,
            property_id=property_id,
            lease_id=lease_id,
            period_due_date=due_date,
            rent_amount=rent_amount,
            rent_cadence=cadence,
            status=RentPeriod.STATUS_UNPAID,
            amount_paid=Decimal("0.00"),
            late_fee_applied=Decimal("0.00"),
            late_fee_waived=False,
        )
        return period_record(period)

    @_translate_db_errors
    def insert_allocations(self, allocations) -> None:
        from payments.models import PaymentAllocation

        PaymentAllocation.objects.using(self.using).bulk_create([
            PaymentAllocation(
                payment_id=a.payment_id,
                rent_period_id=a.rent_period_id,
                amount_to_late_fee=a.amount_to_late_fee,
                amount_to_rent=a.amount_to_rent,
                period_status=a.period_status,
            )
            for a in allocations
        ])

    @_translate_db_errors
    def update_payment(self, payment_id, date_paid, notes=None, summary=None) -> None:
        from payments.models import Payment

        fields = {"date_paid": date_paid, "updated_at": timezone.now()}
        if notes is not None:
            fields["notes"] = notes
        if summary is not None:
            fields["allocation_summary"] = summary
        if not Payment.objects.using(self.using).filter(pk=payment_id).update(**fields):
            raise PaymentNotFound(payment_id)
