from .account import Account, SystemAccountKey, SystemAccountMapping
from .auditlog import AuditLog
from .cashier import CashierShiftClosing
from .entitymembership import Company, EntityMembership, User
from .fixed_asset import AssetDepreciation, AssetStatus, FixedAsset
from .invoice import (Charge, ChargeSource, ClaimStatus, Invoice,
                      InvoiceStatus, InvoiceType, OrderPaymentStatus, Payment,
                      PaymentMethod, ServiceOrder, ServiceType)
from .journal import AccountingEntry, AccountingEntryLine, SourceModule
from .period import FinancialPeriod, FinancialYear, PeriodStatus, YearStatus
