from .account import AccountAdmin, SystemAccountMappingAdmin
from .actions import (cancel_invoices, close_periods, generate_periods,
                      make_current_year, open_years, reopen_periods)
from .asset import AssetDepreciationAdmin, FixedAssetAdmin
from .auditlog import AuditLogAdmin
from .cashier import CashierShiftClosingAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import (AccountingEntryLineInline, ChargeInline,
                      FinancialPeriodInline, PaymentInline)
from .invoice import ChargeAdmin, InvoiceAdmin, PaymentAdmin, ServiceOrderAdmin
from .journal import AccountingEntryAdmin, AccountingEntryLineAdmin
from .membership import CompanyAdmin, EntityMembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .period import FinancialPeriodAdmin, FinancialYearAdmin
