# rent/management/commands/generate_rent_periods.py
from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.exceptions import UnsupportedCadence
from leases.models import Lease
from rent.services import generate_periods_for_active_leases, generate_periods_for_lease


class Command(BaseCommand):
    help = "Create missing rent periods from lease start dates up to a date (default today)."

    def add_arguments(self, parser):
        parser.add_argument("--lease", type=int, help="Only this lease id (any status).")
        parser.add_argument(
            "--through", type=date.fromisoformat, help="Last due date to generate, YYYY-MM-DD."
        )

    def handle(self, *args, **opts):
        through = opts.get("through") or timezone.localdate()

        if opts.get("lease"):
            lease = Lease.objects.filter(pk=opts["lease"]).first()
            if not lease:
                raise CommandError(f"Lease #{opts['lease']} not found")
            try:
                created = generate_periods_for_lease(lease, through=through)
            except UnsupportedCadence as exc:
                raise CommandError(f"Lease #{lease.pk}: {exc}")
            results = {lease.pk: len(created)}
        else:
            results = generate_periods_for_active_leases(through=through)

        for lease_id, count in results.items():
            if count:
                self.stdout.write(f"Lease #{lease_id}: {count} period(s)")

        self.stdout.write(self.style.SUCCESS(
            f"Generated {sum(results.values())} rent period(s) for {len(results)} lease(s) through {through}"))
