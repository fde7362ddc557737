import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from ..exceptions import (DuplicateError, EstateError, NotFound,
                          StorageError, ValidationError)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# ------------------------------------
# Field coercion
# ------------------------------------
def to_decimal(value, field: str = "amount", *, allow_none: bool = False):
    """
    Coerce a money value to a 2-place Decimal.
    Floats are refused outright: they have already lost precision.
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(f"{field} is required.")
    if isinstance(value, (float, bool)):
        raise ValidationError(f"{field} must be a decimal string, not {type(value).__name__}.")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} is not a valid amount: {value!r}.") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} is not a valid amount: {value!r}.")
    return amount.quantize(CENT)


def coerce_money(fields: dict, names, *, nullable=()):
    """Run to_decimal over whichever money fields are present."""
    for name in names:
        if name in fields:
            fields[name] = to_decimal(fields[name], name, allow_none=name in nullable)
    return fields


def pick_fields(data, allowed, *, for_update: bool = False):
    """
    Keep only the keys a caller may write.
    An update with nothing writable left is an error, not a no-op.
    """
    fields = {k: v for k, v in (data or {}).items() if k in allowed}
    if for_update and not fields:
        raise ValidationError("No valid fields to update.")
    return fields


# ------------------------------------
# Lookups
# ------------------------------------
def fetch(model, pk, *, for_update: bool = False):
    qs = model.objects.select_for_update() if for_update else model.objects.all()
    try:
        return qs.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{model._meta.verbose_name.capitalize()} {pk} not found.") from None


def fetch_optional(model, pk):
    if pk in (None, ""):
        return None
    return fetch(model, pk)


def ensure_unique(model, field: str, value, *, exclude_pk=None):
    if value in (None, ""):
        return
    qs = model.objects.filter(**{field: value})
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise DuplicateError(
            f"{model._meta.verbose_name.capitalize()} with {field} {value!r} already exists."
        )


# ------------------------------------
# Instance helpers
# ------------------------------------
def apply_changes(instance, fields: dict) -> dict:
    """Set fields on instance; return {field: [old, new]} for those that changed."""
    changes = {}
    for name, value in fields.items():
        old = getattr(instance, name)
        if old != value:
            setattr(instance, name, value)
            changes[name] = [old, value]
    return changes


def clean_instance(instance, exclude=None):
    """full_clean() with Django's errors mapped onto ours."""
    try:
        instance.full_clean(exclude=exclude)
    except DjangoValidationError as exc:
        codes = {
            err.code
            for errors in getattr(exc, "error_dict", {"": exc.error_list}).values()
            for err in errors
        }
        if codes & {"unique", "unique_together"}:
            raise DuplicateError("; ".join(exc.messages)) from exc
        raise ValidationError("; ".join(exc.messages)) from exc


@contextmanager
def atomic_mutation(label: str):
    """
    One mutation = one transaction.
    Storage failures come out as StorageError (cause chained) after
    transaction.atomic() has already rolled everything back.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.error("Rolled back %s: %s", label, exc)
        raise StorageError(f"Storage failure during {label}: {exc}") from exc
    except EstateError as exc:
        logger.info("Rolled back %s: %s", label, exc.code)
        raise
