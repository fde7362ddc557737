import datetime
import random
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from .. import services
from ..exceptions import ConstraintViolation, ValidationError
from ..models import ActivityLogEntry, Attachment, Billing, Payment, Plot
from .helpers import EstateFixturesMixin


class LedgerExampleTests(EstateFixturesMixin, TestCase):
    def setUp(self):
        self.user = self.make_user()
        self.layout = self.make_layout()
        self.plot = self.make_plot(self.layout)
        self.client_ = self.make_client()
        self.billing = self.make_billing(self.client_, plot=self.plot, amount="1000000.00", user=self.user)

    def test_two_payments_settle_the_bill_and_delete_cascades(self):
        self.assertEqual(self.billing.status, "pending")

        self.pay(self.billing, "400000.00", user=self.user)
        self.billing.refresh_from_db()
        self.assertEqual(self.billing.status, "partial")
        self.assertEqual(services.balance(self.billing.pk), Decimal("600000.00"))

        self.pay(self.billing, "600000.00", user=self.user)
        self.billing.refresh_from_db()
        self.assertEqual(self.billing.status, "paid")
        self.assertEqual(services.balance(self.billing.pk), Decimal("0.00"))

        Attachment.objects.create(
            entity_type="billing", entity_id=self.billing.pk, filename="receipt.pdf", filepath="attachments/r.pdf"
        )
        delete_entries_before = ActivityLogEntry.objects.filter(action="DELETE").count()

        removed = services.delete_billing(self.billing.pk, user=self.user)

        self.assertEqual(removed, 4)  # billing + 2 payments + 1 attachment
        self.assertFalse(Billing.objects.filter(pk=self.billing.pk).exists())
        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(Attachment.objects.count(), 0)
        # one top-level entry for the billing, none for its payments
        self.assertEqual(
            ActivityLogEntry.objects.filter(action="DELETE").count(), delete_entries_before + 1
        )
        entry = ActivityLogEntry.objects.for_entity("billing", self.billing.pk).get(action="DELETE")
        self.assertEqual(entry.details["payments_deleted"], 2)

    def test_each_payment_writes_one_audit_entry(self):
        before = ActivityLogEntry.objects.count()

        payment = self.pay(self.billing, "1000.00", user=self.user)

        self.assertEqual(ActivityLogEntry.objects.count(), before + 1)
        entry = ActivityLogEntry.objects.for_entity("payment", payment.pk).get()
        self.assertEqual(entry.action, "ADD_PAYMENT")
        self.assertEqual(entry.details["status"], ["pending", "partial"])
        self.assertEqual(entry.actor, self.user)

    def test_overpayment_clamps_to_paid_and_records_excess(self):
        payment = self.pay(self.billing, "1000250.00")

        self.billing.refresh_from_db()
        self.assertEqual(self.billing.status, "paid")
        self.assertEqual(self.billing.balance, Decimal("-250.00"))
        entry = ActivityLogEntry.objects.for_entity("payment", payment.pk).get()
        self.assertEqual(entry.details["excess"], "250.00")

    def test_payment_amount_must_be_positive_decimal(self):
        for bad in ("0", "-5.00", 100.0, "abc", None):
            with self.subTest(amount=bad), self.assertRaises(ValidationError):
                services.add_payment(self.billing.pk, {"amount": bad})
        self.assertEqual(Payment.objects.count(), 0)

    def test_payments_are_append_only(self):
        payment = self.pay(self.billing, "1000.00")

        payment.amount = Decimal("2000.00")
        with self.assertRaises(TypeError):
            payment.save()

    def test_payment_cannot_be_deleted_on_its_own(self):
        payment = self.pay(self.billing, "1000.00")

        with self.assertRaises(ConstraintViolation):
            payment.delete()


class LedgerPropertyTests(EstateFixturesMixin, TestCase):
    """For every payment sequence: paid iff sum >= amount, partial iff sum > 0."""

    def test_status_tracks_running_sum(self):
        rng = random.Random(20240917)
        client = self.make_client()

        for run in range(25):
            amount = Decimal(rng.randint(1, 500_000)) / 100
            billing = self.make_billing(client, amount=str(amount))
            running = Decimal("0.00")

            for _ in range(rng.randint(1, 6)):
                step = Decimal(rng.randint(1, 200_000)) / 100
                services.add_payment(billing.pk, {"amount": str(step)})
                running += step

                billing.refresh_from_db()
                if running >= amount:
                    expected = "paid"
                elif running > 0:
                    expected = "partial"
                else:
                    expected = "pending"
                with self.subTest(run=run, amount=amount, paid=running):
                    self.assertEqual(billing.status, expected)
                    # balance recomputed from raw rows matches the running sum
                    self.assertEqual(billing.balance, amount - running)

    def test_derive_status_edges(self):
        cases = [
            ("100.00", "0.00", "pending"),
            ("100.00", "0.01", "partial"),
            ("100.00", "99.99", "partial"),
            ("100.00", "100.00", "paid"),
            ("100.00", "150.00", "paid"),
            ("0.00", "0.00", "pending"),
        ]
        for amount, paid, expected in cases:
            with self.subTest(amount=amount, paid=paid):
                self.assertEqual(services.derive_status(Decimal(amount), Decimal(paid)), expected)


class BillingWorkflowTests(EstateFixturesMixin, TestCase):
    def setUp(self):
        self.layout = self.make_layout()
        self.plot = self.make_plot(self.layout)
        self.client_ = self.make_client()

    @override_settings(ESTATE_BILL_NUMBER_PREFIX="PS2-B", ESTATE_BILL_NUMBER_WIDTH=3)
    def test_bill_numbers_are_sequential(self):
        first = self.make_billing(self.client_)
        second = self.make_billing(self.client_)
        self.assertEqual(first.bill_number, "PS2-B001")
        self.assertEqual(second.bill_number, "PS2-B002")

        # numbering continues from the highest number still in use
        services.delete_billing(second.pk)
        third = self.make_billing(self.client_)
        self.assertEqual(third.bill_number, "PS2-B002")
        services.delete_billing(first.pk)
        self.assertEqual(services.next_bill_number(), "PS2-B003")

    def test_billing_a_plot_sells_it_to_the_client(self):
        self.make_billing(self.client_, plot=self.plot)

        self.plot.refresh_from_db()
        self.assertEqual(self.plot.status, "sold")
        self.assertEqual(self.plot.client, self.client_)
        self.assertEqual(self.plot.sold_date, timezone.localdate())

    def test_plot_linked_to_another_client_cannot_be_billed(self):
        other = self.make_client(name="Meena", phone="+91-9845000002")
        services.update_plot(self.plot.pk, {"status": "booked", "client_id": other.pk})

        with self.assertRaises(ConstraintViolation):
            self.make_billing(self.client_, plot=self.plot)
        self.assertEqual(Billing.objects.count(), 0)

    def test_deleting_last_billing_releases_the_plot(self):
        first = self.make_billing(self.client_, plot=self.plot)
        second = self.make_billing(self.client_, plot=self.plot, amount="5000.00")

        services.delete_billing(first.pk)
        self.plot.refresh_from_db()
        self.assertEqual(self.plot.status, "sold")

        services.delete_billing(second.pk)
        self.plot.refresh_from_db()
        self.assertEqual(self.plot.status, "available")
        self.assertIsNone(self.plot.client_id)
        self.assertIsNone(self.plot.sold_date)

    def test_plot_cannot_change_once_payments_exist(self):
        billing = self.make_billing(self.client_, plot=self.plot)
        self.pay(billing, "1000.00")

        with self.assertRaises(ConstraintViolation):
            services.update_billing(billing.pk, {"plot_id": None})
        billing.refresh_from_db()
        self.assertEqual(billing.plot, self.plot)

    def test_moving_an_unpaid_billing_moves_the_sale(self):
        billing = self.make_billing(self.client_, plot=self.plot)
        new_plot = self.make_plot(self.layout, "P-02")

        services.update_billing(billing.pk, {"plot_id": new_plot.pk})

        self.plot.refresh_from_db()
        new_plot.refresh_from_db()
        self.assertEqual(self.plot.status, "available")
        self.assertEqual(new_plot.status, "sold")
        self.assertEqual(new_plot.client, self.client_)

    def test_status_cannot_be_forced_against_payments(self):
        billing = self.make_billing(self.client_, amount="1000.00")

        with self.assertRaises(ValidationError):
            services.update_billing(billing.pk, {"status": "paid"})
        billing.refresh_from_db()
        self.assertEqual(billing.status, "pending")

    def test_new_amount_rederives_status(self):
        billing = self.make_billing(self.client_, amount="1000.00")
        self.pay(billing, "600.00")

        billing = services.update_billing(billing.pk, {"amount": "600.00"})

        self.assertEqual(billing.status, "paid")

    def test_new_amount_with_stale_status_is_refused(self):
        billing = self.make_billing(self.client_, amount="1000.00")
        self.pay(billing, "400.00")

        # 400 paid of 400 is paid, so asking to stay partial contradicts the payments
        with self.assertRaises(ValidationError):
            services.update_billing(billing.pk, {"amount": "400.00", "status": "partial"})

        billing.refresh_from_db()
        self.assertEqual(billing.amount, Decimal("1000.00"))
        self.assertEqual(billing.status, "partial")

    def test_new_amount_with_matching_status(self):
        billing = self.make_billing(self.client_, amount="1000.00")
        self.pay(billing, "400.00")

        billing = services.update_billing(billing.pk, {"amount": "400.00", "status": "paid"})

        billing.refresh_from_db()
        self.assertEqual(billing.status, "paid")
        self.assertEqual(billing.balance, Decimal("0.00"))
        entry = ActivityLogEntry.objects.for_entity("billing", billing.pk).get(action="UPDATE")
        self.assertEqual(entry.details["changes"]["status"], ["partial", "paid"])

    def test_fully_paid_billing_cannot_be_marked_overdue(self):
        billing = self.make_billing(self.client_, amount="1000.00")
        self.pay(billing, "400.00")

        with self.assertRaises(ValidationError):
            services.update_billing(billing.pk, {"amount": "400.00", "status": "overdue"})

        billing.refresh_from_db()
        self.assertEqual(billing.status, "partial")

    def test_cancel_only_while_unpaid(self):
        unpaid = self.make_billing(self.client_, amount="1000.00")
        part_paid = self.make_billing(self.client_, amount="1000.00")
        self.pay(part_paid, "10.00")

        services.cancel_billing(unpaid.pk, reason="buyer withdrew")
        unpaid.refresh_from_db()
        self.assertEqual(unpaid.status, "cancelled")

        with self.assertRaises(ValidationError):
            services.cancel_billing(part_paid.pk)

        # no money on a cancelled bill
        with self.assertRaises(ValidationError):
            services.add_payment(unpaid.pk, {"amount": "10.00"})

    def test_overdue_sweep_and_payment_after_it(self):
        yesterday = timezone.localdate() - datetime.timedelta(days=1)
        late = self.make_billing(self.client_, amount="1000.00", due_date=yesterday)
        on_time = self.make_billing(
            self.client_, amount="1000.00", due_date=timezone.localdate() + datetime.timedelta(days=5)
        )

        self.assertEqual(services.mark_overdue(), 1)
        late.refresh_from_db()
        on_time.refresh_from_db()
        self.assertEqual(late.status, "overdue")
        self.assertEqual(on_time.status, "pending")
        self.assertTrue(
            ActivityLogEntry.objects.for_entity("billing", late.pk).filter(action="MARK_OVERDUE").exists()
        )

        self.pay(late, "400.00")
        late.refresh_from_db()
        self.assertEqual(late.status, "partial")

    def test_ledger_summary_keeps_white_and_black_apart(self):
        self.make_billing(self.client_, amount="1000.00", market_amount="1600.00")
        second = self.make_billing(self.client_, amount="500.00")
        self.pay(second, "200.00")
        cancelled = self.make_billing(self.client_, amount="9999.00", market_amount="9999.00")
        services.cancel_billing(cancelled.pk)

        for amount, is_black in (("300.00", False), ("700.00", True)):
            expense = services.create_expense(
                {"description": "Survey", "amount": amount, "is_black": is_black, "date": "2024-01-05"}
            )
            services.approve_expense(expense.pk)
        services.create_expense({"description": "Unapproved", "amount": "50.00", "date": "2024-01-05"})

        summary = services.ledger_summary()

        self.assertEqual(summary["white"]["billed"], Decimal("1500.00"))
        self.assertEqual(summary["white"]["received"], Decimal("200.00"))
        self.assertEqual(summary["white"]["outstanding"], Decimal("1300.00"))
        self.assertEqual(summary["white"]["expenses"], Decimal("300.00"))
        self.assertEqual(summary["black"]["billed"], Decimal("1600.00"))
        self.assertEqual(summary["black"]["expenses"], Decimal("700.00"))

    def test_plot_release_happens_only_for_the_plot_left_empty(self):
        plot_two = self.make_plot(self.layout, "P-02")
        self.make_billing(self.client_, plot=self.plot)
        billing = self.make_billing(self.client_, plot=plot_two)

        services.delete_billing(billing.pk)

        self.assertEqual(Plot.objects.get(pk=self.plot.pk).status, "sold")
        self.assertEqual(Plot.objects.get(pk=plot_two.pk).status, "available")
