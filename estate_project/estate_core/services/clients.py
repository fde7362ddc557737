from django.utils import timezone

from ..exceptions import ConstraintViolation, ValidationError
from ..models import Billing, Client, ClientInteraction, Plot
from .attachments import purge_attachments
from .audit_helper import log_action
from .validation import (apply_changes, atomic_mutation, clean_instance,
                         ensure_unique, fetch, pick_fields)

CLIENT_FIELDS = ("name", "phone", "email", "address", "notes", "status")


def _normalise(fields):
    # blank email means "no email", which the partial unique index ignores
    if "email" in fields and not fields["email"]:
        fields["email"] = None
    return fields


def create_client(data: dict, user=None) -> Client:
    fields = _normalise(pick_fields(data, CLIENT_FIELDS))
    ensure_unique(Client, "phone", fields.get("phone"))
    ensure_unique(Client, "email", fields.get("email"))

    client = Client(
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **fields,
    )
    clean_instance(client)

    with atomic_mutation("create client"):
        client.save()
        log_action(
            action="CREATE",
            entity_type="client",
            entity_id=client.pk,
            user=user,
            details={"name": client.name, "phone": client.phone},
        )
    return client


def update_client(client_id, data: dict, user=None) -> Client:
    fields = _normalise(pick_fields(data, CLIENT_FIELDS, for_update=True))

    with atomic_mutation("update client"):
        client = fetch(Client, client_id, for_update=True)
        ensure_unique(Client, "phone", fields.get("phone"), exclude_pk=client.pk)
        ensure_unique(Client, "email", fields.get("email"), exclude_pk=client.pk)

        changes = apply_changes(client, fields)
        clean_instance(client)
        client.save()
        log_action(
            action="UPDATE",
            entity_type="client",
            entity_id=client.pk,
            user=user,
            details={"changes": changes},
        )
    return client


def delete_client(client_id, user=None) -> int:
    """
    Refused while any plot or billing still points at the client; the
    check runs before anything is written. Interactions and attachments
    go with the client.
    """
    with atomic_mutation("delete client"):
        client = fetch(Client, client_id, for_update=True)

        plots = Plot.objects.linked_to(client).count()
        billings = Billing.objects.for_client(client).count()
        if plots or billings:
            raise ConstraintViolation(
                f"Client {client.name!r} is linked to {plots} plot(s) "
                f"and {billings} billing(s)."
            )

        attachments = purge_attachments("client", [client.pk])
        interactions, _ = client.interactions.all().delete()
        client.delete()
        log_action(
            action="DELETE",
            entity_type="client",
            entity_id=client_id,
            user=user,
            details={
                "name": client.name,
                "interactions_deleted": interactions,
                "attachments_deleted": attachments,
            },
        )
    return 1 + interactions + attachments


# ----------------------------
# Interactions (calls, visits)
# ----------------------------
def add_interaction(client_id, data: dict, user=None) -> ClientInteraction:
    interaction_type = (data or {}).get("interaction_type")
    if not interaction_type:
        raise ValidationError("interaction_type is required.")

    with atomic_mutation("add client interaction"):
        client = fetch(Client, client_id)
        interaction = ClientInteraction(
            client=client,
            interaction_type=interaction_type,
            notes=data.get("notes"),
            date=data.get("date") or timezone.now(),
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        clean_instance(interaction)
        interaction.save()
        log_action(
            action="ADD_INTERACTION",
            entity_type="client",
            entity_id=client.pk,
            user=user,
            details={"interaction_id": interaction.pk, "type": interaction_type},
        )
    return interaction
