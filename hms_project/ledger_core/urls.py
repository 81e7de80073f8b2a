from django.urls import path
from . import views

app_name = "ledger_core"

urlpatterns = [
    path("invoices/<int:invoice_id>/payments/", views.record_payment_view, name="record-payment"),
    path("shifts/close/", views.close_shift_view, name="close-shift"),
    path("patients/<int:patient_id>/outstanding/", views.outstanding_liability_view,
         name="outstanding-liability"),
    path("trial-balance/", views.trial_balance_view, name="trial-balance"),
]
