"""
Engine Error Taxonomy

All errors raised by the engine derive from EngineError so callers can
catch the whole family. Each error also derives from the builtin that
matches its nature (ValueError for bad data, RuntimeError for runtime
conditions) so generic handlers keep working.

Severity:
    - EncodingDefect: fatal, indicates a broken position from upstream
    - InferenceFailure: recoverable, the orchestrator falls back to a
      random legal move
    - IllegalSelectionError: fatal at the apply boundary, nothing is pushed
    - ModelSchemaError: fatal at load time
    - EngineBusyError: caller asked for a second move while one is pending
    - IllegalMoveError: a human move rejected by the rules, board unchanged
"""


class EngineError(Exception):
    """Base class for all engine errors."""


class EncodingDefect(EngineError, ValueError):
    """Position cannot be encoded (missing king, too many pieces, ...)."""


class InferenceFailure(EngineError, RuntimeError):
    """Inference backend failed or returned a malformed policy."""


class IllegalSelectionError(EngineError, ValueError):
    """A selected move is not in the legal set of the current position."""


class ModelSchemaError(EngineError, ValueError):
    """Model inputs/outputs do not match the expected schema."""


class EngineBusyError(EngineError, RuntimeError):
    """A move selection is already in flight for this game session."""


class IllegalMoveError(EngineError, ValueError):
    """A player move is malformed or illegal in the current position."""
