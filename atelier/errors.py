"""
Error types for Atelier.

Structural errors (missing ids, malformed import documents, invalid moves)
are raised to the caller. Content decoding never raises; see
``atelier.models.payloads`` for the tolerant decoders.
"""


class AtelierError(ValueError):
    """Base class for Atelier errors."""

    pass


class NotFound(AtelierError):
    """Raised when an operation references an id absent from the workspace."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} not found: {item_id!r}")
        self.kind = kind
        self.item_id = item_id


class InvalidFormat(AtelierError):
    """Raised when an import document fails shape validation."""

    pass


class InvalidMove(AtelierError):
    """Raised when re-parenting a project would create a cycle."""

    pass


class StoreWriteFailure(AtelierError):
    """Raised by the store adapter when a durable write fails."""

    pass
