import logging
from decimal import Decimal

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..exceptions import ValidationError
from ..models import Billing, Expense, Payment
from ..models.billing import PAYMENT_MODES
from .audit_helper import log_action
from .validation import (atomic_mutation, clean_instance, fetch,
                         to_decimal)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Statuses the ledger derives from payments; the rest are set by explicit actions
DERIVED_STATUSES = ("pending", "partial", "paid")
OVERDUE_ELIGIBLE = ("pending", "partial")


# ----------------------------------------------
# Billing status derivation
# ----------------------------------------------
def derive_status(amount: Decimal, paid: Decimal) -> str:
    """
    The only place a payment-driven status is decided.
        nothing paid        → pending
        0 < paid < amount   → partial
        paid >= amount      → paid  (overpayment clamps here)
    """
    if paid <= ZERO:
        return "pending"
    if paid >= amount:
        return "paid"
    return "partial"


def sync_status(billing: Billing, *, paid: Decimal | None = None, keep_overdue: bool = True):
    """
    Bring billing.status in line with its payments; save only on change.
    Cancelled billings are never touched. An overdue billing stays overdue
    until it is fully paid unless keep_overdue is False (a payment has
    just arrived). Returns (old_status, new_status).
    """
    old = billing.status
    if old == "cancelled":
        return old, old

    if paid is None:
        paid = billing.paid_total()
    new = derive_status(billing.amount, paid)

    if old == "overdue" and keep_overdue and new != "paid":
        return old, old
    if new != old:
        billing.status = new
        billing.save(update_fields=["status", "updated_at"])
    return old, new


# ----------------------------------------------
# Payments
# ----------------------------------------------
PAYMENT_MODE_VALUES = {value for value, _ in PAYMENT_MODES}


def add_payment(billing_id, data: dict, user=None) -> Payment:
    """
    Record money received against a billing and re-derive its status.
    Payment insert, status write and audit row commit or roll back together.
    """
    amount = to_decimal(data.get("amount"), "amount")
    if amount <= ZERO:
        raise ValidationError("Payment amount must be positive.")
    mode = data.get("mode") or "cash"
    if mode not in PAYMENT_MODE_VALUES:
        raise ValidationError(f"Unknown payment mode {mode!r}.")

    with atomic_mutation("add payment"):
        # lock the billing so concurrent payments see each other's totals
        billing = fetch(Billing, billing_id, for_update=True)
        if billing.status == "cancelled":
            raise ValidationError(f"Billing {billing.bill_number} is cancelled.")

        paid_before = billing.paid_total()

        payment = Payment(
            billing=billing,
            amount=amount,
            payment_date=data.get("payment_date") or timezone.localdate(),
            mode=mode,
            reference=data.get("reference"),
            notes=data.get("notes"),
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        clean_instance(payment)
        payment.save()

        paid_after = paid_before + amount
        old, new = sync_status(billing, paid=paid_after, keep_overdue=False)

        details = {
            "billing_id": billing.pk,
            "bill_number": billing.bill_number,
            "amount": amount,
            "paid_total": paid_after,
            "status": [old, new],
        }
        excess = paid_after - billing.amount
        if excess > ZERO:
            # accepted and clamped to paid; refunding is handled outside the ledger
            details["excess"] = excess
            logger.warning(
                "Billing %s overpaid by %s (paid %s of %s)",
                billing.bill_number, excess, paid_after, billing.amount,
            )

        log_action(
            action="ADD_PAYMENT",
            entity_type="payment",
            entity_id=payment.pk,
            user=user,
            details=details,
        )

    return payment


# ----------------------------------------------
# Explicit transitions
# ----------------------------------------------
def request_status(billing: Billing, status: str):
    """
    Apply a status a caller asked for, if the ledger allows it.
        cancelled  → only while nothing has been paid
        overdue    → only from pending/partial, never once fully paid
        pending/partial/paid → only when the payments say so
    The caller owns the transaction and the audit entry.
    Returns (old_status, new_status).
    """
    old = billing.status
    if old == "cancelled":
        if status == old:
            return old, old
        raise ValidationError(f"Billing {billing.bill_number} is cancelled.")

    if status == "cancelled":
        paid = billing.paid_total()
        if paid > ZERO:
            raise ValidationError(
                f"Billing {billing.bill_number} has {paid} paid and cannot be cancelled."
            )
    elif status == "overdue":
        if old not in OVERDUE_ELIGIBLE + ("overdue",):
            raise ValidationError(f"A {old} billing cannot become overdue.")
        if derive_status(billing.amount, billing.paid_total()) == "paid":
            raise ValidationError(f"Billing {billing.bill_number} is fully paid.")
    elif status in DERIVED_STATUSES:
        derived = derive_status(billing.amount, billing.paid_total())
        if status != derived:
            raise ValidationError(
                f"Billing {billing.bill_number} is {derived} by its payments, not {status}."
            )
    else:
        raise ValidationError(f"Unknown billing status {status!r}.")

    if status != old:
        billing.status = status
        billing.save(update_fields=["status", "updated_at"])
    return old, status


def cancel_billing(billing_id, user=None, reason: str | None = None) -> Billing:
    """pending/overdue → cancelled, only while nothing has been paid."""
    with atomic_mutation("cancel billing"):
        billing = fetch(Billing, billing_id, for_update=True)
        if billing.status == "cancelled":
            raise ValidationError(f"Billing {billing.bill_number} is already cancelled.")
        old, _ = request_status(billing, "cancelled")
        log_action(
            action="CANCEL",
            entity_type="billing",
            entity_id=billing.pk,
            user=user,
            details={"status": [old, "cancelled"], "reason": reason},
        )
    return billing


def mark_overdue(today=None, user=None) -> int:
    """
    Move unpaid billings whose due date has passed to overdue.
    Each billing is its own transaction with its own audit row.
    """
    today = today or timezone.localdate()
    ids = list(
        Billing.objects.filter(
            status__in=OVERDUE_ELIGIBLE, due_date__isnull=False, due_date__lt=today
        ).values_list("pk", flat=True)
    )

    moved = 0
    for pk in ids:
        with atomic_mutation("mark overdue"):
            billing = Billing.objects.select_for_update().get(pk=pk)
            # re-check under the lock; a payment may have landed meanwhile
            if billing.status not in OVERDUE_ELIGIBLE:
                continue
            old = billing.status
            billing.status = "overdue"
            billing.save(update_fields=["status", "updated_at"])
            log_action(
                action="MARK_OVERDUE",
                entity_type="billing",
                entity_id=billing.pk,
                user=user,
                details={"status": [old, "overdue"], "due_date": billing.due_date},
            )
            moved += 1

    logger.info("Overdue sweep on %s moved %d of %d billings", today, moved, len(ids))
    return moved


# ----------------------------------------------
# Read side
# ----------------------------------------------
def balance(billing_id) -> Decimal:
    """Billing amount minus payments, always from the raw rows."""
    return fetch(Billing, billing_id).balance


def _sum(field, **filter_kwargs):
    return Coalesce(
        Sum(field, filter=Q(**filter_kwargs) if filter_kwargs else None),
        Value(ZERO),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )


def ledger_summary(billings=None, expenses=None) -> dict:
    """
    White (official) and black (market) totals, side by side.
    The two valuations are reported separately and never added together.
    Cancelled billings and unapproved expenses are left out.
    """
    billings = (Billing.objects.all() if billings is None else billings).exclude(
        status="cancelled"
    )
    expenses = (Expense.objects.all() if expenses is None else expenses).filter(
        status="approved"
    )

    billed = billings.aggregate(white=_sum("amount"), black=_sum("market_amount"))
    received = Payment.objects.filter(billing__in=billings).aggregate(total=_sum("amount"))
    spent = expenses.aggregate(
        white=_sum("amount", is_black=False),
        black=_sum("amount", is_black=True),
    )

    return {
        "white": {
            "billed": billed["white"],
            "received": received["total"],
            "outstanding": billed["white"] - received["total"],
            "expenses": spent["white"],
        },
        "black": {
            "billed": billed["black"],
            "expenses": spent["black"],
        },
    }
