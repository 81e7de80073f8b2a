import datetime
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from ..exceptions import ImmutableRecordError, InvalidAmount, OverlappingShiftError
from ..models import (CashierShiftClosing, EntityMembership, Invoice, InvoiceStatus,
                      Payment, SourceModule, User)
from ..services import cashier_user_report, close_cashier_shift, list_shifts
from .base import HospitalLedgerMixin


class CashierShiftTests(HospitalLedgerMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.short_over = self.account("CASH_SHORT_OVER")
        self.invoice = Invoice.objects.create(
            company=self.company,
            patient_id=1,
            status=InvoiceStatus.ISSUED,
            total_amount=Decimal("1000"),
            patient_share=Decimal("1000"),
        )

    def at(self, hour, day=None):
        day = day or self.today
        return timezone.make_aware(datetime.datetime.combine(day, datetime.time(hour)))

    def collect(self, amount, hour, method="CASH", cashier=None):
        # payments stored directly; the shift only reads them
        return Payment.objects.create(
            company=self.company,
            invoice=self.invoice,
            amount=Decimal(amount),
            method=method,
            cashier=cashier or self.user,
            paid_at=self.at(hour),
        )

    def test_surplus_is_posted_to_short_over(self):
        self.collect("300", 10)
        self.collect("200", 16)
        self.collect("70", 12, method="CARD")  # not cash

        shift = close_cashier_shift(
            self.company, self.user, self.at(9), self.at(17), Decimal("505.000"), user=self.user
        )

        self.assertEqual(shift.system_cash_total, Decimal("500.000"))
        self.assertEqual(shift.difference, Decimal("5.000"))
        entry = shift.accounting_entry
        self.assertEqual(entry.source_module, SourceModule.CASHIER_SHIFT)
        self.assertEqual(entry.source_id, str(shift.pk))
        self.assertEqual(entry.lines.get(account=self.cash).debit, Decimal("5.000"))
        self.assertEqual(entry.lines.get(account=self.short_over).credit, Decimal("5.000"))
        self.assertEqual(
            CashierShiftClosing.objects.get(pk=shift.pk).accounting_entry_id, entry.pk
        )

        with self.assertRaises(OverlappingShiftError):
            close_cashier_shift(
                self.company, self.user, self.at(16), self.at(20), Decimal("0")
            )
        self.assertEqual(CashierShiftClosing.objects.count(), 1)

    def test_shortage_debits_short_over(self):
        self.collect("100", 10)
        shift = close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("90"))

        self.assertEqual(shift.difference, Decimal("-10.000"))
        entry = shift.accounting_entry
        self.assertEqual(entry.lines.get(account=self.short_over).debit, Decimal("10.000"))
        self.assertEqual(entry.lines.get(account=self.cash).credit, Decimal("10.000"))

    def test_exact_count_posts_nothing(self):
        self.collect("100", 10)
        shift = close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("100"))

        self.assertTrue(shift.is_balanced)
        self.assertIsNone(shift.accounting_entry)
        self.assertFalse(self.entries(SourceModule.CASHIER_SHIFT).exists())

    def test_range_end_is_exclusive(self):
        self.collect("40", 17)
        shift = close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("0"))
        self.assertEqual(shift.system_cash_total, Decimal("0"))

        # adjacent window is not an overlap and picks the payment up
        later = close_cashier_shift(self.company, self.user, self.at(17), self.at(20), Decimal("40"))
        self.assertEqual(later.system_cash_total, Decimal("40.000"))

    def test_night_shift_wraps_to_next_day(self):
        shift = close_cashier_shift(self.company, self.user, self.at(22), self.at(6), Decimal("0"))
        self.assertEqual(shift.range_end, self.at(22) + datetime.timedelta(hours=8))

    def test_other_cashier_may_overlap(self):
        other = User.objects.create_user(username="second", password="pw")
        EntityMembership.objects.create(user=other, company=self.company, role="cashier")
        close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("0"))
        close_cashier_shift(self.company, other, self.at(9), self.at(17), Decimal("0"))
        self.assertEqual(list_shifts(self.company, self.at(0), self.at(23)).count(), 2)

    def test_negative_count_is_rejected(self):
        with self.assertRaises(InvalidAmount):
            close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("-1"))

    def test_closed_shift_is_immutable(self):
        shift = close_cashier_shift(self.company, self.user, self.at(9), self.at(17), Decimal("0"))
        shift.note = "changed"
        with self.assertRaises(ImmutableRecordError):
            shift.save()
        with self.assertRaises(ImmutableRecordError):
            shift.delete()

    def test_cashier_user_report(self):
        self.collect("30", 10)
        self.collect("20", 11, method="CARD")

        report = cashier_user_report(self.company, self.user, self.at(9), self.at(17))
        self.assertEqual(report["total_amount"], Decimal("50.000"))
        self.assertEqual(report["cash_amount"], Decimal("30.000"))
        self.assertEqual(len(report["payments"]), 2)
