from django.test import TestCase

from .. import services
from ..models import ActivityLogEntry
from .helpers import EstateFixturesMixin


class ActivityQueryTests(EstateFixturesMixin, TestCase):
    def setUp(self):
        self.clerk = self.make_user("clerk")
        self.manager = self.make_user("manager")

        self.layout = self.make_layout(user=self.clerk)
        self.plot = self.make_plot(self.layout, user=self.clerk)
        services.update_plot(self.plot.pk, {"price": "1800000.00"}, user=self.manager)
        self.client_ = self.make_client(user=self.manager)
        # anonymous actor: recorded with no user
        services.create_category({"name": "Survey"})

    def test_filter_by_actor(self):
        entries = services.activity_by(user=self.clerk)

        self.assertEqual(
            sorted(entries.values_list("entity_type", flat=True)), ["layout", "plot"]
        )
        self.assertTrue(all(e.actor == self.clerk for e in entries))

    def test_filter_by_action(self):
        updates = services.activity_by(action="UPDATE")

        self.assertEqual(updates.count(), 1)
        self.assertEqual(updates.get().entity_id, self.plot.pk)

    def test_filters_combine(self):
        entries = services.activity_by(user=self.manager, action="CREATE")

        self.assertEqual(list(entries.values_list("entity_type", flat=True)), ["client"])
        self.assertFalse(services.activity_by(user=self.manager, entity_type="layout").exists())

    def test_no_filters_returns_everything_newest_first(self):
        entries = list(services.activity_by())

        self.assertEqual(len(entries), ActivityLogEntry.objects.count())
        self.assertEqual(entries[0].entity_type, "expense_category")
        self.assertIsNone(entries[0].actor)
