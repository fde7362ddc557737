from .activity import ActivityLogEntry
from .attachment import Attachment
from .backup import BackupRecord
from .billing import Billing, Payment
from .client import Client, ClientInteraction
from .expense import Expense, ExpenseCategory
from .layout import Layout, Plot
from .setting import Setting
