import datetime
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from ..exceptions import InvalidStateError, NoOpenPeriod, PeriodClosedError
from ..models import FinancialYear, PeriodStatus, SourceModule, SystemAccountKey, YearStatus
from ..services import (archive_year, close_period, close_year, create_manual_entry,
                        create_year, generate_monthly_periods, open_period,
                        open_year, resolve_posting_period, set_current_year,
                        trial_balance)
from ..tasks import close_period_task
from .base import HospitalLedgerMixin


class FinancialCalendarTests(HospitalLedgerMixin, TestCase):

    def test_monthly_periods_cover_the_year(self):
        periods = list(self.fy.periods.order_by("period_index"))
        self.assertEqual(len(periods), 12)
        self.assertEqual(periods[0].start_date, self.fy.start_date)
        self.assertEqual(periods[-1].end_date, self.fy.end_date)
        self.assertEqual(periods[1].code, f"{self.today.year}-02")
        # contiguous, no gaps
        for prev, nxt in zip(periods, periods[1:]):
            self.assertEqual(prev.end_date + datetime.timedelta(days=1), nxt.start_date)

    def test_periods_cannot_be_generated_twice(self):
        with self.assertRaises(ValidationError):
            generate_monthly_periods(self.fy)

    def test_short_year_is_clipped(self):
        fy = create_year(
            self.company, self.today.year + 1,
            datetime.date(self.today.year + 1, 1, 15), datetime.date(self.today.year + 1, 3, 10),
        )
        periods = generate_monthly_periods(fy)
        self.assertEqual(len(periods), 3)
        self.assertEqual(periods[0].start_date, datetime.date(self.today.year + 1, 1, 15))
        self.assertEqual(periods[-1].end_date, datetime.date(self.today.year + 1, 3, 10))

    def test_overlapping_year_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_year(
                self.company, self.today.year,
                datetime.date(self.today.year, 6, 1), datetime.date(self.today.year + 1, 5, 31),
            )

    def test_resolve_posting_period(self):
        fy, period = resolve_posting_period(self.company, self.today)
        self.assertEqual(fy, self.fy)
        self.assertTrue(period.covers(self.today))

    def test_resolve_posting_period_requires_open_year(self):
        draft = create_year(
            self.company, self.today.year + 1,
            datetime.date(self.today.year + 1, 1, 1), datetime.date(self.today.year + 1, 12, 31),
        )
        generate_monthly_periods(draft)
        with self.assertRaises(NoOpenPeriod):
            resolve_posting_period(self.company, datetime.date(self.today.year + 1, 2, 1))

    def test_closed_period_can_be_reopened(self):
        period = self.current_period()
        close_period(period)
        with self.assertRaises(PeriodClosedError):
            resolve_posting_period(self.company, self.today)

        open_period(period)
        _, resolved = resolve_posting_period(self.company, self.today)
        self.assertEqual(resolved.pk, period.pk)

    def test_current_year_swap_keeps_one_current(self):
        nxt = create_year(
            self.company, self.today.year + 1,
            datetime.date(self.today.year + 1, 1, 1), datetime.date(self.today.year + 1, 12, 31),
        )
        set_current_year(nxt)

        self.fy.refresh_from_db()
        self.assertFalse(self.fy.is_current)
        self.assertEqual(
            list(FinancialYear.objects.filter(company=self.company, is_current=True)), [nxt]
        )

    def test_year_status_moves_forward_only(self):
        with self.assertRaises(ValidationError):
            open_year(self.fy)  # already OPEN


class YearCloseTests(HospitalLedgerMixin, TestCase):

    def post_activity(self):
        create_manual_entry(
            self.company, self.today, "Consultations",
            [
                {"account": self.cash, "debit": 100, "credit": 0},
                {"account": self.outpatient_revenue, "debit": 0, "credit": 100},
            ],
        )
        create_manual_entry(
            self.company, self.today, "Depreciation",
            [
                {"account": self.account(SystemAccountKey.DEPRECIATION_EXPENSE), "debit": 30, "credit": 0},
                {"account": self.cash, "debit": 0, "credit": 30},
            ],
        )

    def close_all_periods(self, keep_last_open=False):
        periods = list(self.fy.periods.order_by("period_index"))
        if keep_last_open:
            periods = periods[:-1]
        for period in periods:
            close_period(period)

    def test_year_close_moves_net_income_to_retained_earnings(self):
        self.post_activity()
        self.close_all_periods()

        fy = close_year(self.fy, user=self.user)

        self.assertEqual(fy.status, YearStatus.CLOSED)
        self.assertFalse(fy.is_current)
        entry = fy.closing_entry
        self.assertEqual(entry.source_module, SourceModule.CLOSING)
        self.assertEqual(entry.entry_date, self.fy.end_date)
        self.assertBalanced(entry)
        retained = entry.lines.get(account=self.account(SystemAccountKey.RETAINED_EARNINGS))
        self.assertEqual(retained.credit, Decimal("70.000"))

        # revenue and expense accounts are back to zero for the year
        tb = trial_balance(self.company, financial_year=fy)
        for row in tb["rows"]:
            if row["type"] in ("revenue", "expense"):
                self.assertEqual(row["balance"], Decimal("0"))
        self.assertEqual(tb["total_debit"], tb["total_credit"])

    def test_year_close_requires_closed_periods(self):
        self.close_all_periods(keep_last_open=True)
        first = self.fy.periods.get(period_index=1)
        open_period(first)

        with self.assertRaises(InvalidStateError):
            close_year(self.fy)
        self.fy.refresh_from_db()
        self.assertEqual(self.fy.status, YearStatus.OPEN)

    def test_final_period_needs_force_flag(self):
        self.post_activity()
        self.close_all_periods(keep_last_open=True)

        with self.assertRaises(InvalidStateError):
            close_year(self.fy)

        fy = close_year(self.fy, force_close_final_period=True)
        self.assertEqual(fy.status, YearStatus.CLOSED)
        self.assertEqual(fy.periods.get(period_index=12).status, PeriodStatus.CLOSED)

    def test_quiet_year_closes_without_entry(self):
        self.close_all_periods()
        fy = close_year(self.fy)
        self.assertEqual(fy.status, YearStatus.CLOSED)
        self.assertIsNone(fy.closing_entry)

    def test_closed_year_rejects_postings(self):
        self.close_all_periods()
        close_year(self.fy)
        with self.assertRaises(PeriodClosedError):
            create_manual_entry(
                self.company, self.today, "After close",
                [
                    {"account": self.cash, "debit": 1, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 1},
                ],
            )

    def test_archive_follows_close(self):
        with self.assertRaises(ValidationError):
            archive_year(self.fy)

        self.close_all_periods()
        close_year(self.fy)
        fy = archive_year(self.fy)
        self.assertEqual(fy.status, YearStatus.ARCHIVED)

        with self.assertRaises(ValidationError):
            open_year(fy)


class ClosePeriodTaskTests(HospitalLedgerMixin, TestCase):

    def test_task_closes_matching_period_once(self):
        period = self.current_period()

        self.assertEqual(close_period_task(self.company.pk, period.code), period.pk)
        period.refresh_from_db()
        self.assertEqual(period.status, PeriodStatus.CLOSED)

        # already closed: left alone
        self.assertEqual(close_period_task(self.company.pk, period.code), period.pk)

    def test_unknown_period_code(self):
        self.assertIsNone(close_period_task(self.company.pk, "1999-01"))
