from django.test import TestCase

from .. import services
from ..exceptions import DuplicateError, NotFound, ValidationError
from ..models import ActivityLogEntry, Expense, ExpenseCategory
from .helpers import EstateFixturesMixin


class ExpenseApprovalTests(EstateFixturesMixin, TestCase):
    def setUp(self):
        self.approver = self.make_user("accounts")
        self.expense = services.create_expense(
            {"description": "Compound wall", "amount": "85000.00", "date": "2024-02-11"}
        )

    def test_approval_records_the_approver(self):
        expense = services.approve_expense(self.expense.pk, user=self.approver)

        self.assertEqual(expense.status, "approved")
        self.assertEqual(expense.approved_by, self.approver)
        entry = ActivityLogEntry.objects.for_entity("expense", expense.pk).get(action="UPDATE")
        self.assertEqual(entry.details["changes"]["status"], ["pending", "approved"])
        self.assertEqual(entry.details["changes"]["approved_by_id"], self.approver.pk)

    def test_leaving_approved_clears_the_approver(self):
        services.approve_expense(self.expense.pk, user=self.approver)

        expense = services.reject_expense(self.expense.pk, user=self.approver)

        self.assertEqual(expense.status, "rejected")
        self.assertIsNone(expense.approved_by)

    def test_approver_is_not_directly_writable(self):
        with self.assertRaises(ValidationError):
            services.update_expense(self.expense.pk, {"approved_by_id": self.approver.pk})

    def test_plot_must_sit_in_the_given_layout(self):
        meadows = self.make_layout()
        lake = self.make_layout(name="Lake View")
        plot = self.make_plot(lake)

        with self.assertRaises(ValidationError):
            services.create_expense(
                {
                    "description": "Fencing",
                    "amount": "1000.00",
                    "date": "2024-02-11",
                    "layout_id": meadows.pk,
                    "plot_id": plot.pk,
                }
            )

    def test_unknown_category_is_not_found(self):
        with self.assertRaises(NotFound):
            services.update_expense(self.expense.pk, {"category_id": 424242})

    def test_delete_expense(self):
        self.assertEqual(services.delete_expense(self.expense.pk), 1)
        self.assertFalse(Expense.objects.exists())


class ExpenseCategoryTests(EstateFixturesMixin, TestCase):
    def test_category_names_are_unique(self):
        services.create_category({"name": "Civil works"})

        with self.assertRaises(DuplicateError):
            services.create_category({"name": "Civil works"})

    def test_deleting_a_category_keeps_its_expenses(self):
        category = services.create_category({"name": "Legal"})
        expense = services.create_expense(
            {"description": "Registration", "amount": "12000.00", "date": "2024-04-01", "category_id": category.pk}
        )

        services.delete_category(category.pk)

        expense.refresh_from_db()
        self.assertIsNone(expense.category_id)
        self.assertFalse(ExpenseCategory.objects.exists())
        entry = ActivityLogEntry.objects.for_entity("expense_category", category.pk).get(action="DELETE")
        self.assertEqual(entry.details["expenses_unlinked"], 1)
