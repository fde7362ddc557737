import json
import logging
from decimal import Decimal
from functools import wraps

from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from . import services
from .exceptions import (ConstraintViolation, DuplicateError, EstateError,
                         NotFound, RestoreError, StorageError, ValidationError)
from .models import Attachment, Billing

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: 404,
    ValidationError: 400,
    ConstraintViolation: 409,
    DuplicateError: 409,
    RestoreError: 500,
    StorageError: 500,
}

# Market-rate values only users with estate_core.view_black_ledger may see
BLACK_FIELDS = ("market_amount", "market_price", "market_rate_per_sqft", "is_black")


# ----------------------------
# Plumbing
# ----------------------------
def json_endpoint(view):
    """
    Authenticated JSON in, {"ok": ...} JSON out.
    Typed service errors become {"ok": false, "error": {code, message}}.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse(
                {"ok": False, "error": {"code": "unauthenticated", "message": "Login required."}},
                status=401,
            )
        try:
            payload = view(request, *args, **kwargs)
        except EstateError as exc:
            status = next(
                (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
            )
            if status >= 500:
                logger.error("%s failed: %s", view.__name__, exc)
            return JsonResponse({"ok": False, "error": exc.as_dict()}, status=status)
        return JsonResponse({"ok": True, **payload})

    return wrapper


def _body(request) -> dict:
    if request.content_type == "application/json":
        try:
            # numbers stay exact: 12.50 arrives as Decimal("12.50"), never a float
            data = json.loads(request.body or b"{}", parse_float=Decimal)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Malformed JSON body: {exc}") from exc
    else:
        data = request.POST.dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def can_see_black(user) -> bool:
    return user.has_perm("estate_core.view_black_ledger")


def serialize(instance, user) -> dict:
    data = model_to_dict(instance)
    data["id"] = instance.pk
    if not can_see_black(user):
        for field in BLACK_FIELDS:
            data.pop(field, None)
    return data


def _created(instance, request):
    return {"data": serialize(instance, request.user)}


def _deleted(count):
    return {"deleted": count}


# ----------------------------
# Layouts and plots
# ----------------------------
@require_POST
@json_endpoint
def create_layout_view(request):
    return _created(services.create_layout(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def update_layout_view(request, pk):
    return _created(services.update_layout(pk, _body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_layout_view(request, pk):
    return _deleted(services.delete_layout(pk, user=request.user))


@require_POST
@json_endpoint
def create_plot_view(request):
    return _created(services.create_plot(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def update_plot_view(request, pk):
    return _created(services.update_plot(pk, _body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_plot_view(request, pk):
    return _deleted(services.delete_plot(pk, user=request.user))


# ----------------------------
# Clients
# ----------------------------
@require_POST
@json_endpoint
def create_client_view(request):
    return _created(services.create_client(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def update_client_view(request, pk):
    return _created(services.update_client(pk, _body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_client_view(request, pk):
    return _deleted(services.delete_client(pk, user=request.user))


@require_POST
@json_endpoint
def add_interaction_view(request, pk):
    return _created(services.add_interaction(pk, _body(request), user=request.user), request)


# ----------------------------
# Expenses
# ----------------------------
@require_POST
@json_endpoint
def create_expense_view(request):
    return _created(services.create_expense(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def update_expense_view(request, pk):
    return _created(services.update_expense(pk, _body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_expense_view(request, pk):
    return _deleted(services.delete_expense(pk, user=request.user))


@require_POST
@json_endpoint
def create_category_view(request):
    return _created(services.create_category(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_category_view(request, pk):
    return _deleted(services.delete_category(pk, user=request.user))


# ----------------------------
# Billing and payments
# ----------------------------
@require_GET
@json_endpoint
def billing_detail_view(request, pk):
    try:
        billing = Billing.objects.with_paid_total().get(pk=pk)
    except Billing.DoesNotExist:
        raise NotFound(f"Billing {pk} not found.") from None

    return {
        "data": serialize(billing, request.user),
        "paid_total": billing.paid_sum,
        "balance": billing.amount - billing.paid_sum,
        "payments": [serialize(p, request.user) for p in billing.payments.all()],
        "attachments": [
            serialize(a, request.user)
            for a in Attachment.objects.for_entity("billing", billing.pk)
        ],
    }


@require_POST
@json_endpoint
def create_billing_view(request):
    return _created(services.create_billing(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def update_billing_view(request, pk):
    return _created(services.update_billing(pk, _body(request), user=request.user), request)


@require_POST
@json_endpoint
def delete_billing_view(request, pk):
    return _deleted(services.delete_billing(pk, user=request.user))


@require_POST
@json_endpoint
def cancel_billing_view(request, pk):
    reason = _body(request).get("reason")
    return _created(services.cancel_billing(pk, user=request.user, reason=reason), request)


@require_POST
@json_endpoint
def add_payment_view(request, pk):
    payment = services.add_payment(pk, _body(request), user=request.user)
    billing = payment.billing
    return {
        "data": serialize(payment, request.user),
        "billing_status": billing.status,
        "balance": billing.balance,
    }


@require_GET
@json_endpoint
def ledger_summary_view(request):
    summary = services.ledger_summary()
    if not can_see_black(request.user):
        summary.pop("black")
    return {"data": summary}


# ----------------------------
# Attachments
# ----------------------------
@require_POST
@json_endpoint
def add_attachment_view(request):
    upload = request.FILES.get("file")
    if upload is None:
        raise ValidationError("No file uploaded.")
    attachment = services.add_attachment(
        request.POST.get("entity_type"),
        request.POST.get("entity_id"),
        upload,
        user=request.user,
    )
    return _created(attachment, request)


@require_POST
@json_endpoint
def delete_attachment_view(request, pk):
    return _deleted(services.delete_attachment(pk, user=request.user))


# ----------------------------
# Settings, backups, activity
# ----------------------------
@require_POST
@json_endpoint
def update_settings_view(request):
    return _created(services.update_settings(_body(request), user=request.user), request)


@require_POST
@json_endpoint
def create_backup_view(request):
    kind = _body(request).get("kind") or "local"
    record = services.BackupController().create_backup(kind=kind, user=request.user)
    return {"data": serialize(record, request.user)}


@require_POST
@json_endpoint
def restore_backup_view(request):
    path = _body(request).get("path")
    if not path:
        raise ValidationError("path is required.")
    safety = services.BackupController().restore_from_backup(path, user=request.user)
    return {"safety_snapshot": str(safety)}


@require_GET
@json_endpoint
def activity_view(request, entity_type, pk):
    entries = services.activity_for(entity_type, pk)[:200]
    return {
        "data": [
            {
                "id": e.pk,
                "actor": e.actor_id,
                "action": e.action,
                "details": e.details,
                "created_at": e.created_at,
            }
            for e in entries
        ]
    }
