# rent/policy.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings

from core.utils.money import money
from leases import cadence

# Upper bound on how many future periods one payment may create. Guards
# against a mistyped amount (extra zeros) or a broken cadence turning a
# single payment into years of prepaid rent.
DEFAULT_MAX_FUTURE_PERIODS = 12


@dataclass(frozen=True)
class LedgerPolicy:
    grace_days: int = cadence.DEFAULT_GRACE_DAYS
    max_future_periods: int = DEFAULT_MAX_FUTURE_PERIODS
    strict_cadence: bool = False
    late_fees: Dict[str, Decimal] = field(default_factory=lambda: dict(cadence.LATE_FEES))

    @classmethod
    def from_settings(cls) -> "LedgerPolicy":
        fees = dict(cadence.LATE_FEES)
        for tag, amount in (getattr(settings, "RENT_LATE_FEES", None) or {}).items():
            fees[cadence.normalize_cadence(tag)] = money(amount)
        return cls(
            grace_days=int(getattr(settings, "RENT_GRACE_DAYS", cadence.DEFAULT_GRACE_DAYS)),
            max_future_periods=int(getattr(settings, "RENT_MAX_FUTURE_PERIODS", DEFAULT_MAX_FUTURE_PERIODS)),
            strict_cadence=bool(getattr(settings, "RENT_STRICT_CADENCE", False)),
            late_fees=fees,
        )

    def late_fee_for(self, rent_cadence) -> Decimal:
        return cadence.late_fee_amount(rent_cadence, strict=self.strict_cadence, fees=self.late_fees)

    def is_late(self, due_date: date, today: Optional[date] = None) -> bool:
        return cadence.is_period_late(due_date, self.grace_days, today)

    def days_late(self, due_date: date, today: Optional[date] = None) -> int:
        return cadence.days_late(due_date, self.grace_days, today)
