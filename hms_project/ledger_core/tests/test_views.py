import datetime
import json
from decimal import Decimal
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from ..admin.forms import UserAdminChangeForm
from ..models import Company, Invoice, InvoiceStatus, User
from .base import HospitalLedgerMixin


class LedgerViewTests(HospitalLedgerMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.user)

    def test_record_payment_json(self):
        invoice = self.make_invoice("100")
        response = self.client.post(
            reverse("ledger_core:record-payment", args=[invoice.pk]),
            data=json.dumps({"amount": "60.000", "method": "CASH", "reference": "R-1"}),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["status"], InvoiceStatus.PARTIALLY_PAID)
        self.assertEqual(Decimal(body["paid_amount"]), Decimal("60"))

    def test_overpayment_is_a_bad_request(self):
        invoice = self.make_invoice("100")
        response = self.client.post(
            reverse("ledger_core:record-payment", args=[invoice.pk]),
            data={"amount": "150", "method": "CASH"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("exceeds", response.json()["error"])
        self.assertEqual(Invoice.objects.get(pk=invoice.pk).paid_amount, Decimal("0"))

    def test_malformed_amount(self):
        invoice = self.make_invoice("100")
        response = self.client.post(
            reverse("ledger_core:record-payment", args=[invoice.pk]),
            data={"amount": "ten", "method": "CASH"},
        )
        self.assertEqual(response.status_code, 400)

    def test_nan_and_huge_amounts_are_bad_requests(self):
        invoice = self.make_invoice("100")
        for amount in ("NaN", "Infinity", "1e40"):
            with self.subTest(amount=amount):
                response = self.client.post(
                    reverse("ledger_core:record-payment", args=[invoice.pk]),
                    data=json.dumps({"amount": amount, "method": "CASH"}),
                    content_type="application/json",
                )
                self.assertEqual(response.status_code, 400)
                self.assertFalse(response.json()["ok"])
        self.assertEqual(Invoice.objects.get(pk=invoice.pk).paid_amount, Decimal("0"))

    def test_missing_invoice_is_404(self):
        response = self.client.post(
            reverse("ledger_core:record-payment", args=[424242]),
            data={"amount": "1", "method": "CASH"},
        )
        self.assertEqual(response.status_code, 404)

    def test_get_is_not_allowed_for_payments(self):
        invoice = self.make_invoice("100")
        response = self.client.get(reverse("ledger_core:record-payment", args=[invoice.pk]))
        self.assertEqual(response.status_code, 405)

    def test_close_shift(self):
        start = timezone.make_aware(datetime.datetime.combine(self.today, datetime.time(8)))
        response = self.client.post(
            reverse("ledger_core:close-shift"),
            data=json.dumps({
                "range_start": start.isoformat(),
                "range_end": (start + datetime.timedelta(hours=8)).isoformat(),
                "actual_cash": "12.5",
            }),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(Decimal(body["difference"]), Decimal("12.5"))
        self.assertIsNotNone(body["accounting_entry_id"])

    def test_outstanding_and_trial_balance(self):
        self.make_invoice("90", patient_id=44)

        response = self.client.get(reverse("ledger_core:outstanding-liability", args=[44]))
        self.assertEqual(Decimal(response.json()["outstanding"]), Decimal("90"))

        response = self.client.get(reverse("ledger_core:trial-balance"))
        body = response.json()
        self.assertEqual(body["total_debit"], body["total_credit"])
        self.assertEqual(Decimal(body["total_debit"]), Decimal("90"))

    def test_user_without_company_is_forbidden(self):
        loner = User.objects.create_user(username="loner", password="pw")
        self.client.force_login(loner)
        response = self.client.get(reverse("ledger_core:trial-balance"))
        self.assertEqual(response.status_code, 403)

    def test_anonymous_user_is_redirected_to_login(self):
        self.client.logout()
        response = self.client.get(reverse("ledger_core:trial-balance"))
        self.assertEqual(response.status_code, 302)


class AdminChangelistTests(HospitalLedgerMixin, TestCase):
    """Every registered ledger model renders its changelist for a tenant staff user."""

    MODELS = (
        "account", "systemaccountmapping", "financialyear", "financialperiod",
        "accountingentry", "accountingentryline", "invoice", "charge", "payment",
        "serviceorder", "cashiershiftclosing", "fixedasset", "assetdepreciation", "auditlog",
        "company", "user", "entitymembership",
    )

    def test_changelists_render(self):
        admin_user = User.objects.create_superuser(
            username="root", password="pw", email="root@example.com", default_company=self.company
        )
        self.make_invoice("25")
        self.client.force_login(admin_user)
        for model in self.MODELS:
            with self.subTest(model=model):
                response = self.client.get(reverse(f"admin:ledger_core_{model}_changelist"))
                self.assertEqual(response.status_code, 200)


class UserAdminFormTests(HospitalLedgerMixin, TestCase):

    def form(self, company):
        return UserAdminChangeForm(
            instance=self.user,
            data={
                "username": self.user.username,
                "email": "",
                "phone": "",
                "is_active": True,
                "default_company": company.pk,
            },
        )

    def test_default_hospital_needs_membership(self):
        elsewhere = Company.objects.create(name="Elsewhere Clinic")
        form = self.form(elsewhere)
        self.assertFalse(form.is_valid())
        self.assertIn("default_company", form.errors)

        self.assertTrue(self.form(self.company).is_valid())
