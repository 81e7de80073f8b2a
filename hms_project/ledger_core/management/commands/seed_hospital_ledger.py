import datetime
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from ledger_core.models import Company, EntityMembership, FinancialYear
from ledger_core.services import (create_year, ensure_default_accounts,
                                  generate_monthly_periods, open_year,
                                  set_current_year)

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a hospital tenant, a cashier user, the default chart of accounts "
        "and an open current financial year with monthly periods."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",
            default="Demo Hospital",
            help="Name of the hospital (tenant) to create.",
        )
        parser.add_argument(
            "--username", default="cashier", help="Username for the staff user."
        )
        parser.add_argument(
            "--password", default="cashier123", help="Password for the staff user."
        )
        parser.add_argument(
            "--year",
            type=int,
            default=None,
            help="Financial year to open (defaults to the current calendar year).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        company_name = options["company_name"]
        username = options["username"]
        year = options["year"] or timezone.localdate().year

        # 1. Tenant; the slug is made unique by Company.save()
        company, created = Company.objects.get_or_create(
            name=company_name, defaults={"currency_code": settings.LEDGER_DEFAULT_CURRENCY}
        )
        self.stdout.write(
            self.style.SUCCESS(f"{'Created' if created else 'Found'} hospital: {company}")
        )

        # 2. Staff user
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:
            user.set_password(options["password"])
            user.save()
        EntityMembership.objects.get_or_create(
            user=user, company=company, defaults={"role": "cashier"}
        )
        if user.default_company_id is None:
            user.default_company = company
            user.save(update_fields=["default_company"])
        self.stdout.write(self.style.SUCCESS(f"User ready: {user.username}"))

        # 3. Chart of accounts and system account bindings
        accounts = ensure_default_accounts(company)
        self.stdout.write(self.style.SUCCESS(f"Chart of accounts: {len(accounts)} accounts"))

        # 4. Financial calendar
        fy = FinancialYear.objects.filter(company=company, year=year).first()
        if fy is None:
            fy = create_year(
                company,
                year,
                datetime.date(year, 1, 1),
                datetime.date(year, 12, 31),
                user=user,
            )
            generate_monthly_periods(fy, user=user)
            fy = open_year(fy, user=user)
        set_current_year(fy, user=user)
        self.stdout.write(
            self.style.SUCCESS(f"{fy.code} is {fy.status} with {fy.periods.count()} periods")
        )
        self.stdout.write(self.style.SUCCESS("Hospital ledger setup complete!"))
