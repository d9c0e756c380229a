class SmidgenError(Exception):
    """Base exception for smidgen errors."""

    http_status = 500


class InvalidPrivilegeError(SmidgenError):
    """Unknown privilege tier requested."""


class DbConnectionError(SmidgenError):
    """Failed to open, ping or reuse a tier's database handle."""


class InvalidTableError(SmidgenError):
    """Table or column name rejected before any SQL was built."""


class QueryError(SmidgenError):
    """Any failure on the read path."""


class DbWriteError(SmidgenError):
    """Any failure during DB write."""


class ForeignKeyViolation(DbWriteError):
    """The write referenced (or orphaned) a row through a foreign key."""

    http_status = 400


class NotFoundError(SmidgenError):
    """No rows matched or were affected."""

    http_status = 404


class RequiredFieldError(SmidgenError):
    """A required record field was left empty."""

    http_status = 422

    def __init__(self, field: str) -> None:
        super().__init__(f"required field {field!r} is zero value")
        self.field = field
