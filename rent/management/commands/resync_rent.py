# rent/management/commands/resync_rent.py
from datetime import date

from django.core.management.base import BaseCommand
from django.utils import timezone

from rent.services import resync_periods, summarize_resync


class Command(BaseCommand):
    help = "Recompute rent period statuses from their amounts and report remaining dues."

    def add_arguments(self, parser):
        parser.add_argument("--as-of", type=date.fromisoformat, help="YYYY-MM-DD, default today.")
        parser.add_argument("--tenant", type=int)
        parser.add_argument(
            "--dry-run", action="store_true", help="Do not write changes, only report."
        )

    def handle(self, *args, **opts):
        as_of = opts.get("as_of") or timezone.localdate()
        rows = resync_periods(as_of=as_of, tenant=opts.get("tenant"), dry_run=opts["dry_run"])
        summary = summarize_resync(rows, as_of)

        for r in rows:
            if r.changed:
                self.stdout.write(f"Period #{r.period_id}: {r.previous_status} -> {r.status}")
            if r.note == "overpaid":
                self.stdout.write(self.style.WARNING(f"Period #{r.period_id} is overpaid"))

        prefix = "[dry-run] " if opts["dry_run"] else ""
        self.stdout.write(self.style.SUCCESS(
            f"{prefix}{summary['total_periods']} period(s), {summary['changed_count']} changed, "
            f"{summary['overpaid_count']} overpaid, {summary['total_remaining_due']} remaining due "
            f"as of {summary['as_of_date']}"
        ))
