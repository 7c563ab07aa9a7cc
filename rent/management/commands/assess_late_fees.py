# rent/management/commands/assess_late_fees.py
from datetime import date

from django.core.management.base import BaseCommand
from django.utils import timezone

from rent.services import assess_late_fees


class Command(BaseCommand):
    help = "Report late rent periods and their late-fee liability as of a date."

    def add_arguments(self, parser):
        parser.add_argument("--as-of", type=date.fromisoformat, help="YYYY-MM-DD, default today.")
        parser.add_argument("--lease", type=int)
        parser.add_argument("--tenant", type=int)

    def handle(self, *args, **opts):
        as_of = opts.get("as_of") or timezone.localdate()
        rows = assess_late_fees(as_of=as_of, lease=opts.get("lease"), tenant=opts.get("tenant"))

        for r in rows:
            self.stdout.write(
                f"Period #{r.period_id} tenant {r.tenant_id} due {r.period_due_date}: "
                f"{r.days_late} day(s) late, fee {r.late_fee_outstanding}, rent {r.rent_outstanding}, "
                f"total {r.total_due}"
            )

        total = sum((r.total_due for r in rows), 0)
        style = self.style.WARNING if rows else self.style.SUCCESS
        self.stdout.write(style(f"{len(rows)} late period(s) as of {as_of}, {total} due"))
