from sqlalchemy.exc import IntegrityError


# Postgres SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class RepositoryError(Exception):
    """Storage failure that is neither a missing row nor a known constraint."""


class RecordNotFoundError(RepositoryError):
    """No row matched the requested key."""


class DuplicateRecordError(RepositoryError):
    """A unique constraint rejected the write."""


class ForeignKeyViolationError(RepositoryError):
    """The write referenced a row that does not exist."""


def _sqlstate(error: IntegrityError):
    orig = error.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def translate_integrity_error(error: IntegrityError) -> RepositoryError:
    """Map a driver integrity error onto the repository error it represents."""
    code = _sqlstate(error)
    message = str(error.orig).lower()

    if code == UNIQUE_VIOLATION or "unique constraint" in message or "duplicate key" in message:
        return DuplicateRecordError(str(error.orig))
    if code == FOREIGN_KEY_VIOLATION or "foreign key" in message:
        return ForeignKeyViolationError(str(error.orig))
    return RepositoryError(str(error.orig))
