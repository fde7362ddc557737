from decimal import Decimal

from django.db import models
from django.db.models.functions import Coalesce


# -----------------------------------------
# Query helpers shared by the estate models
# -----------------------------------------
class PlotQuerySet(models.QuerySet):
    def for_layout(self, layout):
        return self.filter(layout=layout)

    def linked_to(self, client):
        return self.filter(client=client)


class BillingQuerySet(models.QuerySet):
    def for_client(self, client):
        return self.filter(client=client)

    def with_paid_total(self):
        """Annotate each billing with the sum of its payments (never cached)."""
        return self.annotate(
            paid_sum=Coalesce(
                models.Sum("payments__amount"),
                models.Value(Decimal("0.00")),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            )
        )


class AttachmentQuerySet(models.QuerySet):
    # Attachments point at their owner by (entity_type, entity_id)
    def for_entity(self, entity_type, entity_id):
        return self.filter(entity_type=entity_type, entity_id=entity_id)

    def for_entities(self, entity_type, entity_ids):
        return self.filter(entity_type=entity_type, entity_id__in=list(entity_ids))


class ActivityLogQuerySet(models.QuerySet):
    def for_entity(self, entity_type, entity_id):
        return self.filter(entity_type=entity_type, entity_id=entity_id)

    def by_actor(self, user):
        return self.filter(actor=user)

    # Bulk deletes would bypass the model-level guard
    def delete(self):
        raise TypeError("Activity log entries are append-only.")

    def update(self, **kwargs):
        raise TypeError("Activity log entries are append-only.")
