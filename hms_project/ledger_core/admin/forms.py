from django import forms
from django.contrib.auth.forms import (
    UserChangeForm as DjangoUserChangeForm,
    UserCreationForm as DjangoUserCreationForm)
from ledger_core.models import User


class _DefaultHospitalMixin:
    """A default hospital only makes sense for staff who work there."""

    def clean_default_company(self):
        company = self.cleaned_data.get("default_company")
        # new users have no memberships yet; the membership is added next
        if company is None or self.instance.pk is None:
            return company
        if not self.instance.memberships.filter(company=company, is_active=True).exists():
            raise forms.ValidationError(
                "Add an active membership for this hospital before making it the default."
            )
        return company


# Form used when adding a staff user (cashier, accountant ...)
class UserAdminCreationForm(_DefaultHospitalMixin, DjangoUserCreationForm):
    class Meta(DjangoUserCreationForm.Meta):
        model = User
        fields = ("username", "email", "default_company")


# Form used on the edit page; phone is the cashier desk extension
class UserAdminChangeForm(_DefaultHospitalMixin, DjangoUserChangeForm):
    class Meta(DjangoUserChangeForm.Meta):
        model = User
        fields = (
            "username",
            "email",
            "phone",
            "is_active",
            "is_staff",
            "is_superuser",
            "default_company",
        )
