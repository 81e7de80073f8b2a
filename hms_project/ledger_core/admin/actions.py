from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
from ledger_core.exceptions import LedgerError
from ledger_core.services import (cancel_invoice, close_period,
                                  generate_monthly_periods, open_period,
                                  open_year, set_current_year)

# ---------- Admin actions ----------


def _run_each(modeladmin, request, queryset, func, verb):
    """
    Call `func` once per selected row, each in its own service transaction.
    One failure is reported and does not stop the batch.
    """
    done = 0
    for obj in queryset:
        try:
            func(obj)
            done += 1
        except (LedgerError, ValidationError) as exc:
            modeladmin.message_user(
                request,
                _("Could not %(verb)s %(obj)s: %(err)s") % {"verb": verb, "obj": obj, "err": exc},
                level=messages.ERROR,
            )
    modeladmin.message_user(
        request,
        _("%(verb)s %(done)d of %(total)d.") % {
            "verb": verb.capitalize(), "done": done, "total": len(queryset)
        },
        level=messages.SUCCESS if done == len(queryset) else messages.WARNING,
    )


@admin.action(description="Open selected financial years")
def open_years(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset,
              lambda fy: open_year(fy, user=request.user), "open")


@admin.action(description="Make selected year the current year")
def make_current_year(modeladmin, request, queryset):
    if queryset.count() != 1:
        modeladmin.message_user(request, "Select exactly one year.", level=messages.ERROR)
        return
    _run_each(modeladmin, request, queryset,
              lambda fy: set_current_year(fy, user=request.user), "make current")


@admin.action(description="Generate monthly periods")
def generate_periods(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset,
              lambda fy: generate_monthly_periods(fy, user=request.user), "generate periods for")


@admin.action(description="Close selected periods")
def close_periods(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset,
              lambda p: close_period(p, user=request.user), "close")


@admin.action(description="Re-open selected periods")
def reopen_periods(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset,
              lambda p: open_period(p, user=request.user), "re-open")


@admin.action(description="Cancel selected invoices")
def cancel_invoices(modeladmin, request, queryset):
    _run_each(
        modeladmin, request, queryset,
        lambda inv: cancel_invoice(inv.company, inv.pk, "Cancelled from admin", user=request.user),
        "cancel",
    )
