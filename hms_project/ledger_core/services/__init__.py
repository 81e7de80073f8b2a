from .accounts import (ensure_default_accounts, map_system_account,
                       resolve_system_account)
from .billing import (cancel_invoice, create_credit_note,
                      create_invoice_for_encounter, issue_invoice)
from .cashier import close_cashier_shift, cashier_user_report, list_shifts
from .depreciate import run_depreciation_for_period
from .payment import record_payment
from .periods import (archive_year, close_period, close_year, create_year,
                      generate_monthly_periods, open_period, open_year,
                      resolve_posting_period, set_current_year)
from .posting import create_manual_entry, post_entry, reverse_entry
from .reports import account_ledger, trial_balance
from .statements import (cashier_worklist, daily_report, discharge_blocked,
                         outstanding_patient_liability, patient_statement,
                         payment_receipt)
