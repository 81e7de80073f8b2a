from django.contrib import admin
from ledger_core.models import Charge, Invoice, Payment, ServiceOrder
from .actions import cancel_invoices
from .inlines import ChargeInline, PaymentInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "invoice_type",
        "patient_id",
        "encounter_id",
        "status",
        "total_amount",
        "discount_amount",
        "paid_amount",
        "patient_share",
        "insurance_share",
        "created_at",
    )
    list_filter = ("company", "status", "invoice_type", "claim_status")
    search_fields = ("id", "patient_id", "encounter_id")
    # amounts and status move only through billing / payment services
    readonly_fields = (
        "invoice_type",
        "original_invoice",
        "status",
        "total_amount",
        "discount_amount",
        "paid_amount",
        "patient_share",
        "insurance_share",
        "issued_at",
        "cancelled_at",
        "cancel_reason",
        "created_by",
    )
    inlines = [ChargeInline, PaymentInline]
    actions = [cancel_invoices]

    def has_add_permission(self, request):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("company", "original_invoice")


@admin.register(Charge)
class ChargeAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "encounter_id", "patient_id", "service_type", "description",
                    "total_amount", "invoice")
    list_filter = ("company", "service_type", "source_type")
    search_fields = ("encounter_id", "patient_id", "description")
    readonly_fields = ("invoice",)


@admin.register(ServiceOrder)
class ServiceOrderAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "encounter_id", "order_type", "payment_status", "updated_at")
    list_filter = ("company", "order_type", "payment_status")


@admin.register(Payment)
class PaymentAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "invoice", "amount", "method", "cashier", "reference", "paid_at")
    list_filter = ("company", "method", "paid_at")
    search_fields = ("reference", "invoice__id")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("invoice", "cashier")
