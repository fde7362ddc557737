from ..exceptions import ValidationError
from ..models import Expense, ExpenseCategory, Layout, Plot
from .attachments import purge_attachments
from .audit_helper import log_action
from .validation import (apply_changes, atomic_mutation, clean_instance,
                         coerce_money, ensure_unique, fetch, fetch_optional,
                         pick_fields)

# approved_by is deliberately absent: only the approval transition sets it
EXPENSE_FIELDS = (
    "description", "category_id", "vendor", "amount", "gov_price",
    "market_price", "is_black", "date", "notes", "payment_mode",
    "layout_id", "plot_id", "status", "tags",
)
EXPENSE_MONEY = ("amount", "gov_price", "market_price")
EXPENSE_NULLABLE = ("gov_price", "market_price")

CATEGORY_FIELDS = ("name", "icon", "description")


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def _check_links(fields):
    fetch_optional(ExpenseCategory, fields.get("category_id"))
    fetch_optional(Layout, fields.get("layout_id"))
    plot = fetch_optional(Plot, fields.get("plot_id"))
    layout_id = fields.get("layout_id")
    if plot is not None and layout_id not in (None, "") and str(layout_id) != str(plot.layout_id):
        raise ValidationError(f"Plot {plot.pk} is not in layout {layout_id}.")


def _apply_approval(expense: Expense, old_status, user):
    """Entering 'approved' records the approver; leaving it clears them."""
    if expense.status == "approved" and old_status != "approved":
        expense.approved_by = _actor(user)
    elif expense.status != "approved":
        expense.approved_by = None


# ----------------------------
# Expenses
# ----------------------------
def create_expense(data: dict, user=None) -> Expense:
    fields = coerce_money(pick_fields(data, EXPENSE_FIELDS), EXPENSE_MONEY, nullable=EXPENSE_NULLABLE)
    _check_links(fields)

    expense = Expense(created_by=_actor(user), **fields)
    _apply_approval(expense, None, user)
    clean_instance(expense)

    with atomic_mutation("create expense"):
        expense.save()
        log_action(
            action="CREATE",
            entity_type="expense",
            entity_id=expense.pk,
            user=user,
            details={"amount": expense.amount, "is_black": expense.is_black, "status": expense.status},
        )
    return expense


def update_expense(expense_id, data: dict, user=None) -> Expense:
    fields = coerce_money(
        pick_fields(data, EXPENSE_FIELDS, for_update=True), EXPENSE_MONEY, nullable=EXPENSE_NULLABLE
    )

    with atomic_mutation("update expense"):
        expense = fetch(Expense, expense_id, for_update=True)
        _check_links({
            "category_id": fields.get("category_id"),
            "layout_id": fields.get("layout_id", expense.layout_id),
            "plot_id": fields.get("plot_id", expense.plot_id),
        })

        old_status = expense.status
        changes = apply_changes(expense, fields)
        if "status" in changes:
            _apply_approval(expense, old_status, user)
            changes["approved_by_id"] = expense.approved_by_id

        clean_instance(expense)
        expense.save()
        log_action(
            action="UPDATE",
            entity_type="expense",
            entity_id=expense.pk,
            user=user,
            details={"changes": changes},
        )
    return expense


def approve_expense(expense_id, user=None) -> Expense:
    return update_expense(expense_id, {"status": "approved"}, user=user)


def reject_expense(expense_id, user=None) -> Expense:
    return update_expense(expense_id, {"status": "rejected"}, user=user)


def delete_expense(expense_id, user=None) -> int:
    with atomic_mutation("delete expense"):
        expense = fetch(Expense, expense_id, for_update=True)
        attachments = purge_attachments("expense", [expense.pk])
        expense.delete()
        log_action(
            action="DELETE",
            entity_type="expense",
            entity_id=expense_id,
            user=user,
            details={"description": expense.description, "attachments_deleted": attachments},
        )
    return 1 + attachments


# ----------------------------
# Categories
# ----------------------------
def create_category(data: dict, user=None) -> ExpenseCategory:
    fields = pick_fields(data, CATEGORY_FIELDS)
    ensure_unique(ExpenseCategory, "name", fields.get("name"))
    category = ExpenseCategory(**fields)
    clean_instance(category)

    with atomic_mutation("create expense category"):
        category.save()
        log_action(
            action="CREATE",
            entity_type="expense_category",
            entity_id=category.pk,
            user=user,
            details={"name": category.name},
        )
    return category


def delete_category(category_id, user=None) -> int:
    """Expenses in the category are kept, uncategorised."""
    with atomic_mutation("delete expense category"):
        category = fetch(ExpenseCategory, category_id, for_update=True)
        unlinked = category.expenses.count()
        category.delete()
        log_action(
            action="DELETE",
            entity_type="expense_category",
            entity_id=category_id,
            user=user,
            details={"name": category.name, "expenses_unlinked": unlinked},
        )
    return 1
