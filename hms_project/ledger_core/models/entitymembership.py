from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.text import slugify
from ..managers import TenantManager, TenantUserManager


# ---------- Tenant / Hospital ----------
class Company(models.Model):
    """Tenant: one hospital or facility with its own books."""

    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True
    )

    # Invoices are stamped with this code; no conversion is performed
    currency_code = models.CharField(max_length=10, default="LYD")

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="owned_companies",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            # "Al Noor Clinic" -> "al-noor-clinic", then "-1", "-2" if taken
            base = slugify(self.name) or "company"
            slug, i = base, 1
            while Company.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f"{base}-{i}"
                i += 1
            self.slug = slug
        return super().save(*args, **kwargs)


# ---------- Custom User ----------
class User(AbstractUser):
    """
    Staff user (cashiers, accountants, admins).
    AUTH_USER_MODEL = "ledger_core.User" must be set before the first migrate.
    """

    default_company = models.ForeignKey(
        "Company",
        null=True,
        blank=True,
        # if the company is deleted keep the user, just clear the default
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    phone = models.CharField(max_length=32, blank=True)

    objects = TenantUserManager()

    class Meta:
        indexes = [models.Index(fields=["default_company"], name="user_default_company_idx")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- EntityMembership ----------
class EntityMembership(models.Model):
    """Join row between a user and a hospital, carrying the user's role."""

    ROLE_CHOICES = [
        ("owner", "Owner"),
        ("admin", "Admin"),
        ("accountant", "Accountant"),  # posts entries, closes periods
        ("cashier", "Cashier"),  # records payments, closes own shifts
        ("viewer", "Viewer"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")

    # suspend access without deleting the record
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        # a user's default company must be one of their memberships,
        # the membership being saved counts
        if self.user_id and self.user.default_company_id:
            default_company_pk = self.user.default_company_id
            existing = self.user.memberships.all()
            if self.pk:
                existing = existing.exclude(pk=self.pk)
            company_ids = set(existing.values_list("company_id", flat=True))
            if default_company_pk not in company_ids and default_company_pk != self.company_id:
                raise ValidationError(
                    f"Default company {self.user.default_company} must be a user's membership."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
