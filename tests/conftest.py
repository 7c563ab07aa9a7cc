from datetime import date
from decimal import Decimal

import pytest

from leases.models import Lease
from payments.models import Payment
from properties.models import Property
from rent.models import RentPeriod
from rent.policy import LedgerPolicy
from tenants.models import Tenant


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(first_name="Ada", last_name="Okafor", email="ada@example.com")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(first_name="Ben", last_name="Mills")


@pytest.fixture
def prop(db):
    return Property.objects.create(property_name="Maple Court", property_address1="12 Maple St")


@pytest.fixture
def lease(tenant, prop):
    return Lease.objects.create(
        tenant=tenant,
        property=prop,
        start_date=date(2024, 1, 1),
        rent_amount=Decimal("500.00"),
        rent_cadence="monthly",
    )


@pytest.fixture
def policy():
    return LedgerPolicy()


@pytest.fixture
def make_period(lease):
    def _make(due, rent="500.00", **kwargs):
        target = kwargs.pop("lease", lease)
        kwargs.setdefault("rent_cadence", target.rent_cadence)
        return RentPeriod.objects.create(
            tenant_id=target.tenant_id,
            property_id=target.property_id,
            lease=target,
            period_due_date=due,
            rent_amount=Decimal(rent),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_payment(tenant, lease):
    def _make(amount, date_paid=None, **kwargs):
        kwargs.setdefault("tenant", tenant)
        kwargs.setdefault("lease", lease)
        kwargs.setdefault("property_id", lease.property_id)
        return Payment.objects.create(amount=Decimal(amount), date_paid=date_paid, **kwargs)
    return _make
