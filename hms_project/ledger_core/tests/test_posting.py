import datetime
import random
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from ..exceptions import (ImmutableRecordError, InvalidAmount, PeriodClosedError,
                          TenantMismatch, UnbalancedEntryError)
from ..models import AccountingEntry, AccountingEntryLine, SourceModule, SystemAccountKey
from ..services import (close_period, create_manual_entry, post_entry,
                        reverse_entry, trial_balance)
from ..services.reports import account_ledger
from .base import HospitalLedgerMixin


""" Success tests """
class PostEntrySuccessTests(HospitalLedgerMixin, TestCase):

    def balanced_lines(self, amount="100.000"):
        return [
            {"account": self.cash, "debit": Decimal(amount), "credit": 0},
            {"account": self.outpatient_revenue, "debit": 0, "credit": Decimal(amount)},
        ]

    def test_balanced_entry_is_posted_in_current_period(self):
        entry = create_manual_entry(self.company, self.today, "Opening float", self.balanced_lines())

        self.assertEqual(entry.source_module, SourceModule.MANUAL)
        self.assertEqual(entry.financial_year, self.fy)
        self.assertEqual(entry.financial_period, self.current_period())
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(list(entry.lines.values_list("line_no", flat=True)), [1, 2])
        self.assertBalanced(entry)

    def test_amounts_are_rounded_to_mills(self):
        entry = create_manual_entry(
            self.company,
            self.today,
            "Rounding",
            [
                {"account": self.cash, "debit": "10.0004", "credit": 0},
                {"account": self.outpatient_revenue, "debit": 0, "credit": "10.000"},
            ],
        )
        self.assertEqual(entry.lines.get(line_no=1).debit, Decimal("10.000"))

    def test_reversal_mirrors_lines_and_links_original(self):
        entry = post_entry(self.company, self.today, "Sale", SourceModule.MANUAL, "", self.balanced_lines())
        reversal = reverse_entry(entry, self.today, source_id="")

        self.assertEqual(reversal.reversal_of, entry)
        self.assertEqual(reversal.source_module, entry.source_module)
        cash_line = reversal.lines.get(account=self.cash)
        self.assertEqual(cash_line.credit, Decimal("100.000"))
        self.assertEqual(cash_line.debit, Decimal("0"))

        tb = trial_balance(self.company)
        for row in tb["rows"]:
            self.assertEqual(row["balance"], Decimal("0"))

    def test_trial_balance_totals_agree(self):
        create_manual_entry(self.company, self.today, "A", self.balanced_lines("40"))
        create_manual_entry(self.company, self.today, "B", self.balanced_lines("60"))

        tb = trial_balance(self.company)
        self.assertEqual(tb["total_debit"], tb["total_credit"])
        self.assertEqual(tb["total_debit"], Decimal("100.000"))
        cash_row = next(r for r in tb["rows"] if r["account_id"] == self.cash.pk)
        self.assertEqual(cash_row["balance"], Decimal("100.000"))

    def test_account_ledger_running_balance(self):
        yesterday = self.today - datetime.timedelta(days=1)
        if yesterday.year == self.today.year:
            create_manual_entry(self.company, yesterday, "Earlier", self.balanced_lines("25"))
            opening = Decimal("25.000")
        else:
            opening = Decimal("0")
        create_manual_entry(self.company, self.today, "Today", self.balanced_lines("10"))

        ledger = account_ledger(self.company, self.outpatient_revenue, self.today, self.today)
        # revenue is reported on its credit side
        self.assertEqual(ledger["opening_balance"], opening)
        self.assertEqual(len(ledger["rows"]), 1)
        self.assertEqual(ledger["closing_balance"], opening + Decimal("10.000"))


""" Failure tests """
class PostEntryFailureTests(HospitalLedgerMixin, TestCase):

    def test_unbalanced_entry_is_rejected_and_nothing_written(self):
        before = AccountingEntry.objects.count()
        with self.assertRaises(UnbalancedEntryError) as cm:
            create_manual_entry(
                self.company,
                self.today,
                "Broken",
                [
                    {"account": self.cash, "debit": 100, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 90},
                ],
            )
        self.assertIn("not balanced", str(cm.exception))
        self.assertEqual(AccountingEntry.objects.count(), before)
        self.assertEqual(AccountingEntryLine.objects.count(), 0)

    def test_entry_without_lines_is_rejected(self):
        with self.assertRaises(UnbalancedEntryError):
            create_manual_entry(self.company, self.today, "Empty", [])

    def test_line_must_carry_exactly_one_side(self):
        with self.assertRaises(InvalidAmount):
            create_manual_entry(
                self.company,
                self.today,
                "Two sided",
                [
                    {"account": self.cash, "debit": 10, "credit": 10},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 0},
                ],
            )

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(InvalidAmount):
            create_manual_entry(
                self.company,
                self.today,
                "Negative",
                [
                    {"account": self.cash, "debit": -5, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": -5},
                ],
            )

    def test_account_of_another_company_is_rejected(self):
        other, _, _ = self.make_hospital(name="Other Clinic", username="other")
        foreign_cash = self.account("CASH_MAIN", company=other)

        with self.assertRaises(TenantMismatch):
            create_manual_entry(
                self.company,
                self.today,
                "Cross tenant",
                [
                    {"account": foreign_cash, "debit": 5, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 5},
                ],
            )

    def test_inactive_account_is_rejected(self):
        cash = self.cash
        # never used yet, so it may be deactivated
        cash.is_active = False
        cash.save()
        with self.assertRaises(ValidationError):
            create_manual_entry(
                self.company,
                self.today,
                "Inactive",
                [
                    {"account": cash, "debit": 5, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 5},
                ],
            )

    def test_posting_into_closed_period_fails_and_trial_balance_is_unchanged(self):
        period = self.fy.periods.get(period_index=1)
        close_period(period)
        tb_before = trial_balance(self.company)

        with self.assertRaises(PeriodClosedError):
            create_manual_entry(
                self.company,
                period.start_date,
                "Late posting",
                [
                    {"account": self.cash, "debit": 100, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 100},
                ],
            )

        self.assertEqual(trial_balance(self.company), tb_before)
        self.assertFalse(AccountingEntry.objects.filter(financial_period=period).exists())

    def test_date_outside_any_open_year_fails(self):
        with self.assertRaises(PeriodClosedError):
            create_manual_entry(
                self.company,
                datetime.date(self.today.year + 1, 1, 15),
                "Next year",
                [
                    {"account": self.cash, "debit": 1, "credit": 0},
                    {"account": self.outpatient_revenue, "debit": 0, "credit": 1},
                ],
            )


class BalanceInvariantTests(HospitalLedgerMixin, TestCase):
    """Randomized line sets; seeded so a failure replays the same case."""

    ROUNDS = 60

    def setUp(self):
        super().setUp()
        self.rng = random.Random(20260101)
        self.pool = [
            self.cash,
            self.bank,
            self.patients_ar,
            self.outpatient_revenue,
            self.account(SystemAccountKey.REVENUE_LAB),
            self.account(SystemAccountKey.DISCOUNT_ALLOWED),
        ]

    def mills(self, low=1, high=500000):
        return Decimal(self.rng.randint(low, high)) / 1000

    def balanced_lines(self):
        """2..6 one-sided lines whose debits equal their credits."""
        debits = [self.mills() for _ in range(self.rng.randint(1, 3))]
        total = sum(debits, Decimal("0"))
        # split the same total across 1..3 credit lines
        cuts = sorted(self.rng.sample(range(1, int(total * 1000)), min(2, int(total * 1000) - 1)))
        bounds = [0] + cuts[:self.rng.randint(0, len(cuts))] + [int(total * 1000)]
        credits = [Decimal(b - a) / 1000 for a, b in zip(bounds, bounds[1:])]
        lines = [{"account": self.rng.choice(self.pool), "debit": d, "credit": 0} for d in debits]
        lines += [{"account": self.rng.choice(self.pool), "debit": 0, "credit": c} for c in credits]
        self.rng.shuffle(lines)
        return lines

    def assertNothingWritten(self):
        self.assertEqual(AccountingEntry.objects.count(), 0)
        self.assertEqual(AccountingEntryLine.objects.count(), 0)

    def test_random_balanced_sets_post(self):
        for _ in range(self.ROUNDS):
            entry = create_manual_entry(self.company, self.today, "Random", self.balanced_lines())
            self.assertBalanced(entry)
        tb = trial_balance(self.company)
        self.assertEqual(tb["total_debit"], tb["total_credit"])

    def test_random_unbalanced_sets_are_rejected(self):
        for round_no in range(self.ROUNDS):
            lines = self.balanced_lines()
            victim = self.rng.choice(lines)
            side = "debit" if victim["debit"] else "credit"
            victim[side] = Decimal(victim[side]) + self.mills(1, 10000)
            with self.subTest(round=round_no):
                with self.assertRaises(UnbalancedEntryError):
                    create_manual_entry(self.company, self.today, "Random", lines)
        self.assertNothingWritten()

    def test_random_two_sided_or_empty_lines_are_rejected(self):
        for round_no in range(self.ROUNDS):
            lines = self.balanced_lines()
            victim = self.rng.choice(lines)
            breakage = self.rng.choice(("both", "neither", "negative"))
            if breakage == "both":
                amount = self.mills()
                victim["debit"] = Decimal(victim["debit"]) + amount
                victim["credit"] = Decimal(victim["credit"]) + amount
            elif breakage == "neither":
                victim["debit"] = victim["credit"] = 0
            else:
                side = "debit" if victim["debit"] else "credit"
                victim[side] = -Decimal(victim[side])
            with self.subTest(round=round_no, breakage=breakage):
                with self.assertRaises(InvalidAmount):
                    create_manual_entry(self.company, self.today, "Random", lines)
        self.assertNothingWritten()


class ImmutabilityTests(HospitalLedgerMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.entry = create_manual_entry(
            self.company,
            self.today,
            "Frozen",
            [
                {"account": self.cash, "debit": 50, "credit": 0},
                {"account": self.outpatient_revenue, "debit": 0, "credit": 50},
            ],
        )

    def test_entry_cannot_be_saved_again(self):
        self.entry.description = "Edited"
        with self.assertRaises(ImmutableRecordError):
            self.entry.save()
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.description, "Frozen")

    def test_entry_and_lines_cannot_be_deleted(self):
        with self.assertRaises(ImmutableRecordError):
            self.entry.delete()
        line = self.entry.lines.first()
        with self.assertRaises(ImmutableRecordError):
            line.delete()
        self.assertEqual(self.entry.lines.count(), 2)

    def test_line_cannot_be_edited(self):
        line = self.entry.lines.order_by("line_no").first()
        line.debit = Decimal("75.000")
        with self.assertRaises(ImmutableRecordError):
            line.save()
        line.refresh_from_db()
        self.assertEqual(line.debit, Decimal("50.000"))

    def test_used_account_keeps_its_code_and_cannot_be_disabled(self):
        cash = self.cash
        cash.code = "999999"
        with self.assertRaises(ImmutableRecordError):
            cash.save()

        cash.refresh_from_db()
        cash.is_active = False
        with self.assertRaises(ValidationError):
            cash.save()
