import functools
import json
from decimal import Decimal, InvalidOperation
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.views.decorators.http import require_GET, require_POST
from .exceptions import LedgerError, NotFound
from .models import User
from .services import (close_cashier_shift, outstanding_patient_liability,
                       record_payment, trial_balance)


def ledger_errors(view):
    """Turn business failures into JSON errors: 404 for NotFound, 400 otherwise."""
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "company", None) is None:
            return JsonResponse({"ok": False, "error": "No active company."}, status=403)
        try:
            return view(request, *args, **kwargs)
        except NotFound as e:
            return JsonResponse({"ok": False, "error": str(e)}, status=404)
        except ValidationError as e:
            return JsonResponse({"ok": False, "error": "; ".join(e.messages)}, status=400)
        except LedgerError as e:
            return JsonResponse({"ok": False, "error": str(e)}, status=400)
    return wrapper


def _payload(request):
    if request.content_type == "application/json":
        try:
            return json.loads(request.body or b"{}")
        except ValueError:
            raise ValidationError("Malformed JSON body.")
    return request.POST


def _decimal(value, field):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(f"{field} must be a number.")


def _datetime(value, field):
    parsed = parse_datetime(value or "")
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO date-time.")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


@login_required
@require_POST
@ledger_errors
def record_payment_view(request, invoice_id):
    data = _payload(request)
    result = record_payment(
        request.company,
        invoice_id,
        _decimal(data.get("amount"), "amount"),
        data.get("method", "CASH"),
        reference=data.get("reference"),
        cashier=request.user,
    )
    return JsonResponse({"ok": True, **{k: str(v) if isinstance(v, Decimal) else v
                                       for k, v in result.items()}})


@login_required
@require_POST
@ledger_errors
def close_shift_view(request):
    data = _payload(request)
    cashier = request.user
    if data.get("cashier_id"):
        cashier = get_object_or_404(
            User.objects.for_company(request.company), pk=data["cashier_id"]
        )
    shift = close_cashier_shift(
        request.company,
        cashier,
        _datetime(data.get("range_start"), "range_start"),
        _datetime(data.get("range_end"), "range_end"),
        _decimal(data.get("actual_cash"), "actual_cash"),
        note=data.get("note"),
        user=request.user,
    )
    return JsonResponse({
        "ok": True,
        "id": shift.pk,
        "system_cash_total": str(shift.system_cash_total),
        "actual_cash_total": str(shift.actual_cash_total),
        "difference": str(shift.difference),
        "accounting_entry_id": shift.accounting_entry_id,
    })


@login_required
@require_GET
@ledger_errors
def outstanding_liability_view(request, patient_id):
    amount = outstanding_patient_liability(request.company, patient_id)
    return JsonResponse({"patient_id": patient_id, "outstanding": str(amount)})


@login_required
@require_GET
@ledger_errors
def trial_balance_view(request):
    date_from = parse_date(request.GET.get("from", "")) if request.GET.get("from") else None
    date_to = parse_date(request.GET.get("to", "")) if request.GET.get("to") else None
    tb = trial_balance(request.company, date_from=date_from, date_to=date_to)
    return JsonResponse({
        "rows": [
            {**row, "debit": str(row["debit"]), "credit": str(row["credit"]),
             "balance": str(row["balance"])}
            for row in tb["rows"]
        ],
        "total_debit": str(tb["total_debit"]),
        "total_credit": str(tb["total_credit"]),
    })
