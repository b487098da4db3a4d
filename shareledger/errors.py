"""Ledger error taxonomy.

Business outcomes (validation, not found, insufficient supply/holding) are
raised before anything is committed and are never retried. Conflict and
persistence errors are transient from the caller's point of view: the
operation was rolled back in full and may be submitted again.
"""


class LedgerError(Exception):
    """Base class for every failure the ledger reports."""

    # Short machine-readable code, also used as a telemetry attribute
    code = "ledger_error"
    retryable = False


class LedgerValidationError(LedgerError):
    """The requested share count is not a positive integer."""

    code = "invalid_shares"


class PropertyNotFound(LedgerError):
    """No property exists with the given id."""

    code = "property_not_found"

    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"Property '{property_id}' not found")


class InsufficientSupply(LedgerError):
    """A buy asked for more shares than the property has available."""

    code = "insufficient_supply"

    def __init__(self, property_id: str, requested: int, available: int):
        self.property_id = property_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough shares available: requested {requested}, "
            f"available {available}"
        )


class InsufficientHolding(LedgerError):
    """A sell asked for more shares than the user holds."""

    code = "insufficient_holding"

    def __init__(self, property_id: str, requested: int, held: int):
        self.property_id = property_id
        self.requested = requested
        self.held = held
        super().__init__(f"Insufficient shares: requested {requested}, held {held}")


class InvariantViolation(LedgerError):
    """Applying the operation would break available + held == total."""

    code = "invariant_violation"


class ConflictRetryExhausted(LedgerError):
    """Concurrent writers kept conflicting until the retry budget ran out."""

    code = "conflict_retry_exhausted"
    retryable = True

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Operation conflicted with concurrent updates {attempts} times")


class PersistenceFailure(LedgerError):
    """The store was unreachable or aborted the transaction."""

    code = "persistence_failure"
    retryable = True

    def __init__(self, message: str, retryable: bool = True):
        # Constraint violations fail the same way on every attempt
        self.retryable = retryable
        super().__init__(message)
