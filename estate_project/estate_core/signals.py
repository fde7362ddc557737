from django.db.models import QuerySet
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .exceptions import ConstraintViolation
from .models import Billing, Payment, Plot

# The mutation services check these rules first and explain themselves;
# the receivers catch any other delete path (shell, raw ORM). Client
# deletes need no receiver: PROTECT on plot/billing FKs already refuses them.

"""Block plot deletion while a billing references it."""


@receiver(pre_delete, sender=Plot)
def prevent_delete_billed_plot(sender, instance, **kwargs):
    if Billing.objects.filter(plot=instance).exists():
        raise ConstraintViolation("Cannot delete a plot referenced by a billing.")


"""Payments only leave together with their billing."""


# `origin` is the instance or queryset the delete() was called on
@receiver(pre_delete, sender=Payment)
def prevent_direct_payment_delete(sender, instance, origin=None, **kwargs):
    if isinstance(origin, QuerySet):
        origin = origin.model
    elif origin is not None:
        origin = type(origin)
    if origin is not Billing:
        raise ConstraintViolation("Payments are removed only by deleting their billing.")
