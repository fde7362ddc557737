from django.conf import settings

from ..exceptions import ConstraintViolation, ValidationError
from ..models import Billing, Client, Plot
from .attachments import purge_attachments
from .audit_helper import log_action
from .layouts import apply_plot_status
from .ledger import request_status, sync_status
from .validation import (apply_changes, atomic_mutation, clean_instance,
                         coerce_money, ensure_unique, fetch, fetch_optional,
                         pick_fields)

BILLING_FIELDS = (
    "bill_number", "client_id", "plot_id", "amount", "market_amount",
    "is_black", "payment_type", "due_date", "notes",
)
# status is not a plain field: it goes through ledger.request_status
BILLING_UPDATE_FIELDS = (
    "amount", "market_amount", "is_black", "payment_type",
    "due_date", "notes", "plot_id", "status",
)
BILLING_MONEY = ("amount", "market_amount")


def next_bill_number(prefix: str | None = None, width: int | None = None) -> str:
    """
    <prefix><zero-padded sequence>, e.g. PS2-B001.
    The sequence is one past the highest number currently in use under
    the prefix; numbers that do not parse as digits are ignored.
    """
    prefix = settings.ESTATE_BILL_NUMBER_PREFIX if prefix is None else prefix
    width = width or settings.ESTATE_BILL_NUMBER_WIDTH

    highest = 0
    issued = Billing.objects.filter(bill_number__startswith=prefix).values_list(
        "bill_number", flat=True
    )
    for number in issued:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:0{width}d}"


# ----------------------------------------------
# Plot side effects
# ----------------------------------------------
def _check_plot_free_for(plot: Plot, client: Client):
    if plot.client_id is not None and plot.client_id != client.pk:
        raise ConstraintViolation(
            f"Plot {plot.plot_number!r} is linked to another client ({plot.client_id})."
        )


def _sell_plot(plot: Plot, client: Client) -> bool:
    """Link the plot to the billed client and mark it sold. False if it already was."""
    if plot.status == "sold" and plot.client_id == client.pk:
        return False
    old_status = plot.status
    plot.client_id = client.pk
    plot.status = "sold"
    apply_plot_status(plot, old_status)
    plot.save(update_fields=["client", "status", "booking_date", "sold_date", "updated_at"])
    return True


def _release_plot(plot_id) -> bool:
    """Back to available once no billing references the plot any more."""
    if plot_id is None or Billing.objects.filter(plot_id=plot_id).exists():
        return False
    plot = Plot.objects.select_for_update().get(pk=plot_id)
    old_status = plot.status
    plot.status = "available"
    apply_plot_status(plot, old_status)
    plot.save(update_fields=["client", "status", "booking_date", "sold_date", "updated_at"])
    return True


# ----------------------------------------------
# Billing workflows
# ----------------------------------------------
def create_billing(data: dict, user=None) -> Billing:
    """
    Raise a bill to a client, optionally for a plot.
    Billing a plot sells it to the client in the same transaction.
    """
    fields = coerce_money(pick_fields(data, BILLING_FIELDS), BILLING_MONEY, nullable=("market_amount",))
    if fields.get("client_id") in (None, ""):
        raise ValidationError("client_id is required.")

    client = fetch(Client, fields.pop("client_id"))
    plot = fetch_optional(Plot, fields.pop("plot_id", None))
    if plot is not None:
        _check_plot_free_for(plot, client)
    if fields.get("bill_number"):
        ensure_unique(Billing, "bill_number", fields["bill_number"])

    with atomic_mutation("create billing"):
        billing = Billing(
            client=client,
            plot=plot,
            status="pending",
            created_by=user if getattr(user, "is_authenticated", False) else None,
            **fields,
        )
        if not billing.bill_number:
            billing.bill_number = next_bill_number()
        clean_instance(billing)
        billing.save()

        plot_sold = _sell_plot(plot, client) if plot is not None else False
        log_action(
            action="CREATE",
            entity_type="billing",
            entity_id=billing.pk,
            user=user,
            details={
                "bill_number": billing.bill_number,
                "client_id": client.pk,
                "plot_id": plot.pk if plot else None,
                "amount": billing.amount,
                "market_amount": billing.market_amount,
                "plot_sold": plot_sold,
            },
        )
    return billing


def update_billing(billing_id, data: dict, user=None) -> Billing:
    fields = coerce_money(
        pick_fields(data, BILLING_UPDATE_FIELDS, for_update=True),
        BILLING_MONEY,
        nullable=("market_amount",),
    )
    status = fields.pop("status", None)

    with atomic_mutation("update billing"):
        billing = fetch(Billing, billing_id, for_update=True)
        if billing.status == "cancelled":
            raise ValidationError(f"Billing {billing.bill_number} is cancelled.")

        old_plot_id = billing.plot_id
        if "plot_id" in fields:
            plot = fetch_optional(Plot, fields["plot_id"])
            fields["plot_id"] = plot.pk if plot else None
            if fields["plot_id"] != old_plot_id:
                # moving money off a plot would orphan its reconciliation
                if billing.payments.exists():
                    raise ConstraintViolation(
                        f"Billing {billing.bill_number} has payments; its plot cannot change."
                    )
                if plot is not None:
                    _check_plot_free_for(plot, billing.client)

        changes = apply_changes(billing, fields)
        clean_instance(billing)
        billing.save()

        if "plot_id" in changes:
            if billing.plot_id is not None:
                _sell_plot(billing.plot, billing.client)
            changes["plot_released"] = _release_plot(old_plot_id)

        # a new total can move the bill between pending/partial/paid;
        # any requested status is then checked against the re-derived one
        before = billing.status
        if "amount" in changes:
            sync_status(billing)
        if status is not None:
            request_status(billing, status)
        if billing.status != before:
            changes["status"] = [before, billing.status]

        log_action(
            action="UPDATE",
            entity_type="billing",
            entity_id=billing.pk,
            user=user,
            details={"changes": changes},
        )
    return billing


def delete_billing(billing_id, user=None) -> int:
    """
    Attachments, then payments, then the billing row, all in one
    transaction; a plot left without billings goes back to available.
    Returns the number of rows removed.
    """
    with atomic_mutation("delete billing"):
        billing = fetch(Billing, billing_id, for_update=True)
        plot_id = billing.plot_id

        attachments = purge_attachments("billing", [billing.pk])
        # the collector deletes dependent payments before the billing row
        _, per_model = billing.delete()
        payments = per_model.get("estate_core.Payment", 0)
        plot_released = _release_plot(plot_id)

        log_action(
            action="DELETE",
            entity_type="billing",
            entity_id=billing_id,
            user=user,
            details={
                "bill_number": billing.bill_number,
                "payments_deleted": payments,
                "attachments_deleted": attachments,
                "plot_released": plot_released,
            },
        )
    return 1 + payments + attachments
