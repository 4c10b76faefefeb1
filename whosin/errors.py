class InvalidInput(ValueError):
    """A caller-side precondition was violated before touching the database."""


class StorageError(Exception):
    """The persistence layer failed (connectivity, constraint or query error)."""
