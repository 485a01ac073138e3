"""
Error taxonomy for the session engine.

Generation errors all collapse to the same recovery (deterministic fallback);
the subclasses only exist so logs say *why* a fallback happened.
Persistence errors are recorded and never block a state transition.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine errors."""


class GenerationError(EngineError):
    """Base class for anything that makes a generation call unusable."""


class GenerationUnavailable(GenerationError):
    """No credential or provider configured."""


class GenerationTransportError(GenerationError):
    """Network failure, timeout, or non-2xx reply from the provider."""


class GenerationParseError(GenerationError):
    """Reply text did not contain parseable JSON after fence stripping."""


class GenerationValidationError(GenerationError):
    """Reply parsed but did not match the expected shape."""

    def __init__(self, message: str, dropped: int = 0):
        super().__init__(message)
        self.dropped = dropped


class PersistenceError(EngineError):
    """A record-store operation failed."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
        self.cause = cause


class InvalidTransition(EngineError):
    """A session operation was called from a state that does not allow it."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} while session is {state}")
        self.operation = operation
        self.state = state


class UnknownModule(EngineError):
    """A module key with no catalog entry or fallback content (configuration error)."""

    def __init__(self, module: str):
        super().__init__(f"Unknown learning module '{module}'")
        self.module = module
