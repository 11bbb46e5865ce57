"""
Tagged result values for expected-but-recoverable outcomes.

Parse failures and failed provider calls are part of normal operation for
this pipeline, so the functions that produce them return ``Ok`` or ``Err``
instead of raising. Callers branch on ``result.ok``.

Example:
    >>> result = parse(...)
    >>> if result.ok:
    ...     use(result.value)
    ... else:
    ...     logger.warning(result.message)

Author: ai-i18n contributors
License: MIT
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")

# Error kinds carried by Err values.
PARSE_ERROR = "parse_error"
PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome holding a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """
    Failed outcome.

    Attributes:
        kind: Machine-readable failure kind (PARSE_ERROR, PROVIDER_ERROR).
        message: Human-readable description.
        error: The underlying exception, when there is one.
    """

    kind: str
    message: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
