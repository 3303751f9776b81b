"""Exception hierarchy for retrace."""


class RetraceError(Exception):
    """Base class for all retrace failures."""
    pass


class StateInconsistencyError(RetraceError):
    """
    Raised when a session snapshot contradicts itself.

    The usual cause is a token that references a node id missing from the
    rule base's node table. This indicates a broken snapshot rather than a
    recoverable condition, so callers should let it propagate.
    """

    def __init__(self, message: str, node_id: int | None = None):
        super().__init__(message)
        self.node_id = node_id


class SnapshotFormatError(RetraceError):
    """Raised when a serialized session snapshot cannot be decoded."""
    pass


class ConfigError(RetraceError):
    """Raised when a retrace configuration file is invalid."""
    pass
