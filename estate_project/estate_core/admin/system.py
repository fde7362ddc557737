from django.contrib import admin

from estate_core.models import ActivityLogEntry, Attachment, BackupRecord, Setting

from .read_only import ReadOnlyAdmin


@admin.register(ActivityLogEntry)
class ActivityLogEntryAdmin(ReadOnlyAdmin):
    list_display = ("id", "actor", "action", "entity_type", "entity_id", "created_at")
    search_fields = ("entity_type", "action", "actor__username")

    def get_search_fields(self, request):
        return self.search_fields

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        return super().get_queryset(request).select_related("actor")


@admin.register(Attachment)
class AttachmentAdmin(ReadOnlyAdmin):
    list_display = ("id", "filename", "entity_type", "entity_id", "filesize", "created_at")


@admin.register(BackupRecord)
class BackupRecordAdmin(ReadOnlyAdmin):
    list_display = ("id", "kind", "status", "size", "filepath", "created_at")


@admin.register(Setting)
class SettingAdmin(ReadOnlyAdmin):
    list_display = ("company_name", "backup_schedule", "backup_retention", "updated_at")
