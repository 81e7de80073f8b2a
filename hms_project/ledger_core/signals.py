from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import (Account, AccountingEntryLine, FinancialYear, Invoice,
                     InvoiceStatus)

"""Block deletion if account has ever been used in an entry line."""


# pre_delete fires just before Django deletes the instance
@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_lines(sender, instance, **kwargs):
    if AccountingEntryLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete an account used in accounting entries.")


"""Block invoice deletion once it has left DRAFT."""


@receiver(pre_delete, sender=Invoice)
def prevent_delete_issued_invoice(sender, instance, **kwargs):
    if instance.status != InvoiceStatus.DRAFT or instance.payments.exists():
        raise ValidationError("Only an unpaid DRAFT invoice can be deleted; cancel it instead.")


@receiver(pre_delete, sender=FinancialYear)
def prevent_delete_year_with_entries(sender, instance, **kwargs):
    if instance.entries.exists():
        raise ValidationError("Cannot delete a financial year with posted entries.")
