from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from core.exceptions import LedgerError
from payments.models import Payment
from payments.services.allocation import PaymentAllocator
from payments.store import DjangoLedgerStore


class Command(BaseCommand):
    help = (
        "Allocate every payment that has no allocation rows yet across its tenant's "
        "rent periods, oldest payment first."
    )

    def add_arguments(self, parser):
        parser.add_argument("--tenant", type=int, help="Only payments of this tenant id.")
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Limit number of payments processed (0 = no limit).",
        )
        parser.add_argument(
            "--dry-run", action="store_true", help="Allocate, report, then roll back."
        )

    def handle(self, *args, **opts):
        dry = opts["dry_run"]
        limit = int(opts["limit"] or 0)

        pay_qs = (
            Payment.objects.filter(allocations__isnull=True)
            .order_by("date_paid", "id")
            .distinct()
        )
        if opts.get("tenant"):
            pay_qs = pay_qs.filter(tenant_id=opts["tenant"])
        if limit:
            pay_qs = pay_qs[:limit]

        allocator = PaymentAllocator(DjangoLedgerStore())
        allocated = 0
        failed = 0

        for p in list(pay_qs):
            paid_on = p.date_paid or timezone.localdate(p.created_at)
            try:
                with transaction.atomic():
                    outcome = allocator.allocate_payment(p.tenant_id, p.pk, p.amount, paid_on)
                    if dry:
                        transaction.set_rollback(True)
            except LedgerError as exc:
                failed += 1
                self.stdout.write(self.style.ERROR(f"Payment #{p.pk}: {exc}"))
                continue

            allocated += 1
            line = (
                f"Payment #{p.pk}: {outcome.total_applied} over {len(outcome.applied)} period(s)"
                f", remainder {outcome.remainder}"
            )
            if outcome.remainder:
                self.stdout.write(self.style.WARNING(line))
            else:
                self.stdout.write(line)

        prefix = "[dry-run] " if dry else ""
        self.stdout.write(self.style.SUCCESS(
            f"{prefix}Allocated {allocated} payment(s), {failed} failed."))
