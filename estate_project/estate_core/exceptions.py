class EstateError(Exception):
    """Base for every typed failure a mutation can return to its caller."""

    code = "error"

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def as_dict(self):
        return {"code": self.code, "message": self.message}


class NotFound(EstateError):
    """Referenced entity does not exist."""

    code = "not_found"


class ValidationError(EstateError):
    """Malformed or missing field, or no valid fields to update."""

    code = "validation_error"


class ConstraintViolation(EstateError):
    """Delete or relink blocked by live references."""

    code = "constraint_violation"


class DuplicateError(EstateError):
    """Unique field collision."""

    code = "duplicate"


class RestoreError(EstateError):
    """Restoring the store from a backup artifact failed."""

    code = "restore_error"


class StorageError(EstateError):
    """Underlying I/O or transaction failure."""

    code = "storage_error"
