from .attachments import add_attachment, delete_attachment
from .audit_helper import activity_by, activity_for, log_action
from .backup import BackupController
from .billing import (create_billing, delete_billing, next_bill_number,
                      update_billing)
from .clients import (add_interaction, create_client, delete_client,
                      update_client)
from .company_settings import get_settings, update_settings
from .expenses import (approve_expense, create_category, create_expense,
                       delete_category, delete_expense, reject_expense,
                       update_expense)
from .layouts import (create_layout, create_plot, delete_layout, delete_plot,
                      update_layout, update_plot)
from .ledger import (add_payment, balance, cancel_billing, derive_status,
                     ledger_summary, mark_overdue, sync_status)
