import json

from django.core.serializers.json import DjangoJSONEncoder

from ..models import ActivityLogEntry


def log_action(
    *,
    action: str,
    entity_type: str,
    entity_id=None,
    user=None,
    details: dict | None = None,
):
    """
    Central audit logger.
    Must run inside the caller's transaction: if this write fails the
    whole mutation rolls back with it, so no business change is ever
    left without its audit row (and vice versa).
    """

    # Decimals and dates are not JSON; store them the way the API returns them
    details = json.loads(json.dumps(details or {}, cls=DjangoJSONEncoder))

    return ActivityLogEntry.objects.create(
        actor=user if getattr(user, "is_authenticated", False) else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )


# ----------------------------
# Read side
# ----------------------------
def activity_for(entity_type: str, entity_id):
    """Audit history of one record, newest first."""
    return ActivityLogEntry.objects.for_entity(entity_type, entity_id)


def activity_by(user=None, action: str | None = None, entity_type: str | None = None):
    qs = ActivityLogEntry.objects.all()
    if user is not None:
        qs = qs.by_actor(user)
    if action:
        qs = qs.filter(action=action)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    return qs
