"""
Error taxonomy for the ledger engine.

Business-rule errors also derive from ValueError so API handlers can map
them to validation failures. Only TransientStoreError is ever retried.
"""


class LedgerEngineError(Exception):
    """Root of every error raised by the engine."""


# Configuration errors: fatal for the affected unit, never retried.


class ConfigurationError(LedgerEngineError, ValueError):
    pass


class InvalidTierConfiguration(ConfigurationError):
    pass


class NoApplicableTier(ConfigurationError):
    pass


class NoCommissionParameterFound(ConfigurationError):
    pass


class InvalidCommissionParameter(ConfigurationError):
    pass


class InvalidRubric(ConfigurationError):
    pass


# Idempotence errors.


class DuplicateCalculation(LedgerEngineError, ValueError):
    pass


class AlreadyRemunerated(LedgerEngineError, ValueError):
    pass


# Input errors.


class InvalidMovementAmount(LedgerEngineError, ValueError):
    pass


class InvalidMovement(LedgerEngineError, ValueError):
    pass


class InvalidRemunerationInput(LedgerEngineError, ValueError):
    pass


class InvalidPeriod(LedgerEngineError, ValueError):
    pass


class EntityNotFound(LedgerEngineError, LookupError):
    pass


# Persistence errors.


class TransientStoreError(LedgerEngineError):
    """A persistence conflict that may succeed when attempted again."""


class AccountConflict(TransientStoreError):
    """Another worker created the same (owner, type) account first."""


class RetryExhausted(LedgerEngineError):
    def __init__(self, operation: str, attempts: int, last_error: Exception):
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
