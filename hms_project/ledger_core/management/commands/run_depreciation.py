import datetime
from django.core.management.base import BaseCommand, CommandError
from ledger_core.exceptions import LedgerError
from ledger_core.models import Company, FinancialPeriod
from ledger_core.services import run_depreciation_for_period


class Command(BaseCommand):
    help = "Run monthly depreciation for one hospital and the period covering --date."

    def add_arguments(self, parser):
        parser.add_argument("company_slug", help="Slug of the hospital (tenant).")
        parser.add_argument(
            "--date",
            type=datetime.date.fromisoformat,
            default=None,
            help="Any date inside the target period (YYYY-MM-DD); defaults to today.",
        )

    def handle(self, *args, **options):
        company = Company.objects.filter(slug=options["company_slug"]).first()
        if company is None:
            raise CommandError(f"Unknown company {options['company_slug']!r}")
        day = options["date"] or datetime.date.today()

        period = FinancialPeriod.objects.filter(
            company=company, start_date__lte=day, end_date__gte=day
        ).order_by("-financial_year__start_date").first()
        if period is None:
            raise CommandError(f"No financial period covers {day}")

        try:
            result = run_depreciation_for_period(company, period)
        except LedgerError as e:
            raise CommandError(str(e))
        self.stdout.write(
            self.style.SUCCESS(
                f"{period.code}: {result['processed']} depreciated, "
                f"{result['skipped']} skipped, total {result['total_amount']}"
            )
        )
