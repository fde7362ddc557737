from .client import ClientAdmin
from .inlines import ClientInteractionInline, PaymentInline, PlotInline
from .ledger import (BillingAdmin, ExpenseAdmin, ExpenseCategoryAdmin,
                     PaymentAdmin)
from .property import LayoutAdmin, PlotAdmin
from .read_only import ReadOnlyAdmin, ReadOnlyTabularInline
from .system import (ActivityLogEntryAdmin, AttachmentAdmin,
                     BackupRecordAdmin, SettingAdmin)
