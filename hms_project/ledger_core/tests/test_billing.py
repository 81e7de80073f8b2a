from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from ..exceptions import InvalidAmount, InvalidStateError
from ..models import (Charge, Invoice, InvoiceStatus, InvoiceType, ServiceType,
                      SourceModule, SystemAccountKey)
from ..services import (cancel_invoice, create_credit_note,
                        create_invoice_for_encounter, record_payment,
                        trial_balance)
from .base import HospitalLedgerMixin


class InvoiceIssueTests(HospitalLedgerMixin, TestCase):

    def test_issue_posts_billing_entry_split_by_service(self):
        self.add_charge("80", 501, service_type=ServiceType.OUTPATIENT)
        self.add_charge("50", 501, service_type=ServiceType.LAB)
        invoice = create_invoice_for_encounter(
            self.company, 501, 1, patient_share=Decimal("100"), discount_amount=Decimal("10")
        )

        self.assertEqual(invoice.status, InvoiceStatus.ISSUED)
        self.assertEqual(invoice.total_amount, Decimal("130.000"))
        self.assertEqual(invoice.insurance_share, Decimal("20.000"))
        self.assertEqual(Charge.objects.filter(invoice=invoice).count(), 2)

        entry = self.entries(SourceModule.BILLING).get(source_id=str(invoice.pk))
        self.assertBalanced(entry)
        amounts = {line.account_id: (line.debit, line.credit) for line in entry.lines.all()}
        self.assertEqual(amounts[self.patients_ar.pk], (Decimal("100.000"), Decimal("0.000")))
        self.assertEqual(
            amounts[self.account(SystemAccountKey.RECEIVABLE_INSURANCE).pk][0], Decimal("20.000")
        )
        self.assertEqual(
            amounts[self.account(SystemAccountKey.DISCOUNT_ALLOWED).pk][0], Decimal("10.000")
        )
        self.assertEqual(
            amounts[self.account(SystemAccountKey.REVENUE_LAB).pk][1], Decimal("50.000")
        )

    def test_draft_invoice_has_no_entry(self):
        invoice = self.make_invoice("40", issue=False)
        self.assertEqual(invoice.status, InvoiceStatus.DRAFT)
        self.assertFalse(self.entries(SourceModule.BILLING).exists())

    def test_encounter_without_charges_cannot_be_billed(self):
        with self.assertRaises(InvalidStateError):
            create_invoice_for_encounter(self.company, 999, 1)

    def test_patient_share_outside_net_is_rejected(self):
        self.add_charge("100", 502)
        with self.assertRaises(InvalidAmount):
            create_invoice_for_encounter(self.company, 502, 1, patient_share=Decimal("120"))
        # charges stay billable
        self.assertFalse(Charge.objects.filter(encounter_id=502, invoice__isnull=False).exists())

    def test_paid_amount_above_net_fails_validation(self):
        invoice = self.make_invoice("100")
        invoice.paid_amount = Decimal("150")
        with self.assertRaises(ValidationError):
            invoice.save()

    def test_paid_invoice_cannot_change_status(self):
        invoice = self.make_invoice("100")
        record_payment(self.company, invoice.pk, Decimal("100"), "CASH", cashier=self.user)
        invoice.refresh_from_db()
        with self.assertRaises(ValidationError):
            invoice.transition_to(InvoiceStatus.PARTIALLY_PAID)


class CancelInvoiceTests(HospitalLedgerMixin, TestCase):

    def test_cancel_reverses_billing_entry_and_frees_charges(self):
        invoice = self.make_invoice("120")

        cancelled = cancel_invoice(self.company, invoice.pk, "Wrong patient", user=self.user)

        self.assertEqual(cancelled.status, InvoiceStatus.CANCELLED)
        self.assertEqual(cancelled.cancel_reason, "Wrong patient")
        self.assertIsNotNone(cancelled.cancelled_at)
        self.assertFalse(Charge.objects.filter(invoice=invoice).exists())

        original = self.entries(SourceModule.BILLING).get(source_id=str(invoice.pk))
        reversal = self.entries(SourceModule.BILLING).get(source_id=f"CANCEL-{invoice.pk}")
        self.assertEqual(reversal.reversal_of, original)
        for row in trial_balance(self.company)["rows"]:
            self.assertEqual(row["balance"], Decimal("0"))

    def test_cancel_draft_posts_nothing(self):
        invoice = self.make_invoice("30", issue=False)
        cancel_invoice(self.company, invoice.pk, "Duplicate")
        self.assertFalse(self.entries().exists())

    def test_invoice_with_payments_cannot_be_cancelled(self):
        invoice = self.make_invoice("100")
        record_payment(self.company, invoice.pk, Decimal("20"), "CASH", cashier=self.user)

        with self.assertRaises(InvalidStateError):
            cancel_invoice(self.company, invoice.pk, "Too late")
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, InvoiceStatus.PARTIALLY_PAID)

    def test_cancelled_invoice_cannot_be_cancelled_again(self):
        invoice = self.make_invoice("10")
        cancel_invoice(self.company, invoice.pk, "once")
        with self.assertRaises(InvalidStateError):
            cancel_invoice(self.company, invoice.pk, "twice")


class CreditNoteTests(HospitalLedgerMixin, TestCase):

    def test_credit_note_mirrors_paid_invoice(self):
        invoice = self.make_invoice("100")
        record_payment(self.company, invoice.pk, Decimal("100"), "CASH", cashier=self.user)

        note = create_credit_note(self.company, invoice.pk, reason="Service not delivered")

        self.assertEqual(note.invoice_type, InvoiceType.CREDIT_NOTE)
        self.assertEqual(note.original_invoice_id, invoice.pk)
        self.assertEqual(note.status, InvoiceStatus.PAID)
        self.assertEqual(note.total_amount, Decimal("100.000"))

        entry = self.entries(SourceModule.BILLING).get(source_id=str(note.pk))
        self.assertBalanced(entry)
        ar_line = entry.lines.get(account=self.patients_ar)
        self.assertEqual(ar_line.credit, Decimal("100.000"))
        revenue_line = entry.lines.get(account=self.outpatient_revenue)
        self.assertEqual(revenue_line.debit, Decimal("100.000"))

    def test_only_one_credit_note_per_invoice(self):
        invoice = self.make_invoice("60")
        create_credit_note(self.company, invoice.pk)
        with self.assertRaises(InvalidStateError):
            create_credit_note(self.company, invoice.pk)
        self.assertEqual(
            Invoice.objects.filter(original_invoice=invoice).count(), 1
        )

    def test_draft_invoice_cannot_be_credited(self):
        invoice = self.make_invoice("60", issue=False)
        with self.assertRaises(InvalidStateError):
            create_credit_note(self.company, invoice.pk)

    def test_unposted_invoice_cannot_be_credited(self):
        # a legacy row moved past DRAFT without ever posting its billing entry
        invoice = self.make_invoice("200", patient_share=Decimal("0"), issue=False)
        Invoice.objects.filter(pk=invoice.pk).update(status=InvoiceStatus.PARTIALLY_PAID)

        with self.assertRaises(InvalidStateError):
            create_credit_note(self.company, invoice.pk)

        self.assertFalse(Invoice.objects.filter(original_invoice=invoice).exists())
        self.assertFalse(self.entries(SourceModule.BILLING).exists())
        tb = trial_balance(self.company)
        self.assertEqual(tb["total_debit"], Decimal("0"))

    def test_zero_confirmed_draft_credits_cleanly(self):
        invoice = self.make_invoice("200", patient_share=Decimal("0"), issue=False)
        record_payment(self.company, invoice.pk, Decimal("0"), "CASH")

        create_credit_note(self.company, invoice.pk)

        # issue entry and its mirror cancel out
        for row in trial_balance(self.company)["rows"]:
            with self.subTest(account=row["code"]):
                self.assertEqual(row["balance"], Decimal("0"))

    def test_credit_note_rejects_payments(self):
        invoice = self.make_invoice("60")
        note = create_credit_note(self.company, invoice.pk)
        with self.assertRaises(InvalidStateError):
            record_payment(self.company, note.pk, Decimal("0"), "CASH")
