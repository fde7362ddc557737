from django.utils import timezone

from ..exceptions import ConstraintViolation, DuplicateError, ValidationError
from ..models import Billing, Client, Expense, Layout, Plot
from .attachments import purge_attachments
from .audit_helper import log_action
from .validation import (apply_changes, atomic_mutation, clean_instance,
                         coerce_money, fetch, fetch_optional, pick_fields)

LAYOUT_FIELDS = (
    "name", "location", "description",
    "gov_rate_per_sqft", "market_rate_per_sqft",
    "total_area", "total_plots", "status", "amenities", "images",
)
LAYOUT_MONEY = ("gov_rate_per_sqft", "market_rate_per_sqft", "total_area")

# booking_date/sold_date are not writable: only a status transition stamps them
PLOT_FIELDS = (
    "plot_number", "area", "area_unit", "dimensions", "facing", "status",
    "client_id", "price", "market_price", "is_prime", "features",
)
PLOT_MONEY = ("area", "price", "market_price")


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


# ----------------------------------------------
# Layouts
# ----------------------------------------------
def create_layout(data: dict, user=None) -> Layout:
    fields = coerce_money(pick_fields(data, LAYOUT_FIELDS), LAYOUT_MONEY)
    layout = Layout(created_by=_actor(user), **fields)
    clean_instance(layout)

    with atomic_mutation("create layout"):
        layout.save()
        log_action(
            action="CREATE",
            entity_type="layout",
            entity_id=layout.pk,
            user=user,
            details={"name": layout.name},
        )
    return layout


def update_layout(layout_id, data: dict, user=None) -> Layout:
    fields = coerce_money(pick_fields(data, LAYOUT_FIELDS, for_update=True), LAYOUT_MONEY)

    with atomic_mutation("update layout"):
        layout = fetch(Layout, layout_id, for_update=True)
        changes = apply_changes(layout, fields)
        clean_instance(layout)
        layout.save()
        log_action(
            action="UPDATE",
            entity_type="layout",
            entity_id=layout.pk,
            user=user,
            details={"changes": changes},
        )
    return layout


def delete_layout(layout_id, user=None) -> int:
    """
    Delete a layout together with its plots and every attachment of both.
    Children go first. Refused while any plot is sold or on a billing,
    the same rules a single plot delete applies.
    Returns the number of rows removed.
    """
    with atomic_mutation("delete layout"):
        layout = fetch(Layout, layout_id, for_update=True)
        plot_ids = list(layout.plots.values_list("pk", flat=True))

        sold = layout.plots.filter(status="sold").count()
        if sold:
            raise ConstraintViolation(f"Layout {layout.name!r} has {sold} sold plot(s).")
        billed = Billing.objects.filter(plot_id__in=plot_ids).count()
        if billed:
            raise ConstraintViolation(
                f"Layout {layout.name!r} has {billed} billing(s) on its plots."
            )

        expenses_unlinked = Expense.objects.filter(layout=layout).count()
        attachments = purge_attachments("plot", plot_ids)
        attachments += purge_attachments("layout", [layout.pk])
        plots, _ = Plot.objects.filter(pk__in=plot_ids).delete()
        layout.delete()

        # One entry for the whole cascade; child counts ride along in details
        log_action(
            action="DELETE",
            entity_type="layout",
            entity_id=layout_id,
            user=user,
            details={
                "name": layout.name,
                "plots_deleted": plots,
                "attachments_deleted": attachments,
                "expenses_unlinked": expenses_unlinked,
            },
        )
    return 1 + plots + attachments


# ----------------------------------------------
# Plots
# ----------------------------------------------
def apply_plot_status(plot: Plot, old_status):
    """
    Side effects of a plot status change:
        booked     → needs a client, stamps booking_date
        sold       → needs a client, stamps sold_date
        available  → drops the client and both dates
    """
    new = plot.status
    if new in ("booked", "sold") and plot.client_id is None:
        raise ValidationError(f"A client is required to mark a plot {new}.")

    today = timezone.localdate()
    if new == "available":
        plot.client_id = None
        plot.booking_date = None
        plot.sold_date = None
    elif new == "booked" and old_status != "booked":
        plot.booking_date = today
    elif new == "sold" and old_status != "sold":
        plot.sold_date = today


def _check_plot_number(layout_id, plot_number, exclude_pk=None):
    qs = Plot.objects.filter(layout_id=layout_id, plot_number=plot_number)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise DuplicateError(f"Plot {plot_number!r} already exists in layout {layout_id}.")


def create_plot(data: dict, user=None) -> Plot:
    layout_id = (data or {}).get("layout_id")
    if layout_id in (None, ""):
        raise ValidationError("layout_id is required.")
    fields = coerce_money(pick_fields(data, PLOT_FIELDS), PLOT_MONEY, nullable=("market_price",))

    layout = fetch(Layout, layout_id)
    if "client_id" in fields:
        client = fetch_optional(Client, fields["client_id"])
        fields["client_id"] = client.pk if client else None
    _check_plot_number(layout.pk, fields.get("plot_number"))

    plot = Plot(layout=layout, **fields)
    apply_plot_status(plot, old_status=None)
    clean_instance(plot)

    with atomic_mutation("create plot"):
        plot.save()
        log_action(
            action="CREATE",
            entity_type="plot",
            entity_id=plot.pk,
            user=user,
            details={"layout_id": layout.pk, "plot_number": plot.plot_number},
        )
    return plot


def update_plot(plot_id, data: dict, user=None) -> Plot:
    fields = coerce_money(
        pick_fields(data, PLOT_FIELDS, for_update=True), PLOT_MONEY, nullable=("market_price",)
    )

    with atomic_mutation("update plot"):
        plot = fetch(Plot, plot_id, for_update=True)
        if "client_id" in fields:
            client = fetch_optional(Client, fields["client_id"])
            fields["client_id"] = client.pk if client else None
        if "plot_number" in fields:
            _check_plot_number(plot.layout_id, fields["plot_number"], exclude_pk=plot.pk)

        old_status, old_client = plot.status, plot.client_id
        changes = apply_changes(plot, fields)

        if "status" in changes or "client_id" in changes:
            apply_plot_status(plot, old_status)
            # a billed plot stays with its billed client
            if plot.client_id != old_client and plot.billings.exists():
                raise ConstraintViolation(
                    f"Plot {plot.plot_number!r} is billed; its client cannot change."
                )
            if plot.client_id != old_client:
                changes["client_id"] = [old_client, plot.client_id]

        clean_instance(plot)
        plot.save()
        log_action(
            action="UPDATE",
            entity_type="plot",
            entity_id=plot.pk,
            user=user,
            details={"changes": changes},
        )
    return plot


def delete_plot(plot_id, user=None) -> int:
    with atomic_mutation("delete plot"):
        plot = fetch(Plot, plot_id, for_update=True)
        if plot.status == "sold":
            raise ConstraintViolation(f"Plot {plot.plot_number!r} is sold.")
        billed = plot.billings.count()
        if billed:
            raise ConstraintViolation(
                f"Plot {plot.plot_number!r} is referenced by {billed} billing(s)."
            )

        attachments = purge_attachments("plot", [plot.pk])
        plot.delete()
        log_action(
            action="DELETE",
            entity_type="plot",
            entity_id=plot_id,
            user=user,
            details={"plot_number": plot.plot_number, "attachments_deleted": attachments},
        )
    return 1 + attachments
