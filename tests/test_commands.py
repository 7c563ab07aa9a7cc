from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from payments.models import PaymentAllocation
from rent.models import RentPeriod

pytestmark = pytest.mark.django_db


def _run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


def test_generate_rent_periods(lease):
    output = _run("generate_rent_periods", "--through", "2024-02-15")

    assert "Generated 2 rent period(s) for 1 lease(s) through 2024-02-15" in output
    assert RentPeriod.objects.filter(lease=lease).count() == 2


def test_generate_rent_periods_unknown_lease(db):
    with pytest.raises(CommandError):
        _run("generate_rent_periods", "--lease", "999")


def test_assess_late_fees_command(make_period):
    make_period(date(2024, 1, 1))

    output = _run("assess_late_fees", "--as-of", "2024-01-20")

    assert "14 day(s) late" in output
    assert "1 late period(s) as of 2024-01-20, 545.00 due" in output


def test_resync_rent_dry_run(make_period):
    period = make_period(date(2024, 1, 1), amount_paid=Decimal("500.00"))

    output = _run("resync_rent", "--as-of", "2024-01-02", "--dry-run")

    assert f"Period #{period.pk}: unpaid -> paid" in output
    assert output.strip().splitlines()[-1].startswith("[dry-run] 1 period(s), 1 changed")
    period.refresh_from_db()
    assert period.status == "unpaid"


def test_allocate_payments(tenant, make_period, make_payment):
    make_period(date(2024, 1, 1))
    make_period(date(2024, 2, 1))
    first = make_payment("500.00", date_paid=date(2024, 1, 2))
    second = make_payment("300.00", date_paid=date(2024, 2, 3))

    output = _run("allocate_payments")

    assert "Allocated 2 payment(s), 0 failed." in output
    assert PaymentAllocation.objects.get(payment=first).amount_to_rent == Decimal("500.00")
    assert PaymentAllocation.objects.get(payment=second).amount_to_rent == Decimal("300.00")

    # already allocated payments are not picked up again
    assert "Allocated 0 payment(s)" in _run("allocate_payments")


def test_allocate_payments_dry_run(make_period, make_payment):
    period = make_period(date(2024, 1, 1))
    make_payment("500.00", date_paid=date(2024, 1, 2))

    output = _run("allocate_payments", "--dry-run")

    assert "[dry-run] Allocated 1 payment(s), 0 failed." in output
    assert not PaymentAllocation.objects.exists()
    period.refresh_from_db()
    assert period.amount_paid == Decimal("0.00")
