from ..exceptions import ValidationError
from ..models import Setting
from .audit_helper import log_action
from .validation import apply_changes, atomic_mutation, clean_instance, pick_fields

SETTING_FIELDS = (
    "company_name", "company_address", "company_phone", "company_email",
    "company_logo", "backup_schedule", "backup_location", "backup_retention",
)


def get_settings() -> Setting:
    """The single settings row, created with defaults on first read."""
    setting, _ = Setting.objects.get_or_create(pk=Setting.SINGLETON_ID)
    return setting


def update_settings(data: dict, user=None) -> Setting:
    fields = pick_fields(data, SETTING_FIELDS, for_update=True)
    if "backup_retention" in fields:
        try:
            fields["backup_retention"] = int(fields["backup_retention"])
        except (TypeError, ValueError):
            raise ValidationError("backup_retention must be a whole number.") from None

    with atomic_mutation("update settings"):
        setting = get_settings()
        changes = apply_changes(setting, fields)
        setting.updated_by = user if getattr(user, "is_authenticated", False) else None
        clean_instance(setting)
        setting.save()
        log_action(
            action="UPDATE",
            entity_type="settings",
            entity_id=setting.pk,
            user=user,
            details={"changes": changes},
        )
    return setting
