import datetime
from decimal import Decimal
from django.test import TestCase, override_settings
from django.utils import timezone
from ..models import InvoiceStatus
from ..services import (cashier_worklist, create_credit_note, daily_report,
                        discharge_blocked, outstanding_patient_liability,
                        patient_statement, payment_receipt, record_payment)
from ..exceptions import NotFound
from .base import HospitalLedgerMixin


class WorklistTests(HospitalLedgerMixin, TestCase):

    def test_worklist_lists_what_the_patient_still_owes(self):
        owing = self.make_invoice("100")
        settled = self.make_invoice("50")
        record_payment(self.company, settled.pk, Decimal("50"), "CASH")
        insured = self.make_invoice("200", patient_share=Decimal("0"))

        ids = [row["id"] for row in cashier_worklist(self.company)]
        self.assertIn(owing.pk, ids)
        self.assertNotIn(settled.pk, ids)
        # fully insured and never confirmed at the desk
        self.assertIn(insured.pk, ids)

        record_payment(self.company, insured.pk, Decimal("0"), "CASH")
        ids = [row["id"] for row in cashier_worklist(self.company)]
        self.assertNotIn(insured.pk, ids)

    def test_worklist_is_oldest_first(self):
        first = self.make_invoice("10")
        second = self.make_invoice("20")
        ids = [row["id"] for row in cashier_worklist(self.company)]
        self.assertLess(ids.index(first.pk), ids.index(second.pk))


class LiabilityTests(HospitalLedgerMixin, TestCase):

    def test_outstanding_liability_sums_open_invoices(self):
        a = self.make_invoice("100", patient_id=7)
        self.make_invoice("300", patient_share=Decimal("60"), patient_id=7)
        self.make_invoice("999", patient_id=8)
        record_payment(self.company, a.pk, Decimal("25"), "CASH")

        self.assertEqual(outstanding_patient_liability(self.company, 7), Decimal("135.000"))

    def test_credited_invoice_no_longer_counts(self):
        invoice = self.make_invoice("80", patient_id=7)
        create_credit_note(self.company, invoice.pk)
        self.assertEqual(outstanding_patient_liability(self.company, 7), Decimal("0"))

    def test_discharge_blocked_by_threshold(self):
        self.make_invoice("5", patient_id=9)
        self.assertTrue(discharge_blocked(self.company, 9))
        self.assertFalse(discharge_blocked(self.company, 9, threshold=Decimal("10")))
        self.assertFalse(discharge_blocked(self.company, 10))

    @override_settings(LEDGER_DISCHARGE_DEBT_THRESHOLD="5.000")
    def test_discharge_threshold_from_settings(self):
        self.make_invoice("5", patient_id=9)
        self.assertFalse(discharge_blocked(self.company, 9))


class StatementTests(HospitalLedgerMixin, TestCase):

    def test_patient_statement(self):
        invoice = self.make_invoice("120", patient_id=3)
        record_payment(self.company, invoice.pk, Decimal("20"), "CASH", cashier=self.user)

        statement = patient_statement(self.company, 3)
        self.assertEqual(len(statement["invoices"]), 1)
        self.assertEqual(len(statement["payments"]), 1)
        self.assertEqual(statement["summary"]["total_invoiced"], Decimal("120.000"))
        self.assertEqual(statement["summary"]["total_paid"], Decimal("20.000"))
        self.assertEqual(statement["summary"]["remaining"], Decimal("100.000"))

    def test_payment_receipt(self):
        invoice = self.make_invoice("40")
        result = record_payment(self.company, invoice.pk, Decimal("40"), "CASH", cashier=self.user)

        receipt = payment_receipt(self.company, result["payment_id"])
        self.assertEqual(receipt["payment"]["cashier"], self.user.username)
        self.assertEqual(receipt["invoice"]["status"], InvoiceStatus.PAID)

        with self.assertRaises(NotFound):
            payment_receipt(self.company, result["payment_id"] + 1000)

    def test_daily_report(self):
        cash_invoice = self.make_invoice("70")
        card_invoice = self.make_invoice("30")
        record_payment(self.company, cash_invoice.pk, Decimal("70"), "CASH")
        record_payment(self.company, card_invoice.pk, Decimal("10"), "CARD")

        now = timezone.now()
        report = daily_report(
            self.company, now - datetime.timedelta(hours=1), now + datetime.timedelta(hours=1)
        )
        self.assertEqual(report["payments"]["count"], 2)
        self.assertEqual(report["payments"]["total"], Decimal("80.000"))
        self.assertEqual(report["payments"]["by_method"]["CARD"]["amount"], Decimal("10.000"))
        self.assertEqual(report["invoices"]["count"], 2)
        self.assertEqual(report["invoices"]["total"], Decimal("100.000"))
        self.assertEqual(report["invoices"]["cancelled"], 0)
