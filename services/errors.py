"""Errors raised by the tracker. Both subclass built-ins so callers can catch broadly."""


class InvalidActivity(ValueError):
    """Activity has an empty name, a non-positive ratio, or a bad colour."""


class NotFound(LookupError):
    """No activity or log with the requested id."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} '{item_id}' not found")
        self.kind = kind
        self.item_id = item_id


class StaleCollection(RuntimeError):
    """A stored collection changed after it was loaded; the write was refused."""

    def __init__(self, key: str, expected: int, found: int):
        super().__init__(
            f"{key} was modified concurrently (loaded version {expected}, now {found})"
        )
        self.key = key
