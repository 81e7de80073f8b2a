from django.contrib.auth.models import UserManager
from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        return self.filter(company=company)

    def active(self, company):
        return self.filter(company=company, is_active=True)


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Manager exposing for_company() / active() on every tenant model."""


# Users are scoped through default_company / memberships, not a company FK
class TenantUserManager(UserManager):
    def for_company(self, company):
        return self.get_queryset().filter(memberships__company=company).distinct()
