"""
HubSpoke Server - Operation Result Model

Result type returned across the changeset engine boundary.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from exceptions import ErrorKind, HubSpokeError


@dataclass
class OperationResult:
    """
    Outcome of an engine operation
    Either success with a value, or a specific error kind with a message
    """
    success: bool
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    action_index: Optional[int] = None  # Index of the failing action, if any
    errors: List[str] = field(default_factory=list)

    @classmethod
    def Ok(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def Fail(cls, error: HubSpokeError, action_index: Optional[int] = None) -> "OperationResult":
        return cls(
            success=False,
            error_kind=error.kind,
            message=error.message,
            action_index=action_index if action_index is not None else error.action_index,
            errors=list(getattr(error, "errors", None) or [error.message]),
        )
