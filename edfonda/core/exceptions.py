# edfonda/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class CoreError(Exception):
    """Base error for all core-domain exceptions."""


# ---- Row / group scoped errors (captured into the plan, never propagated) ----
class SampleInfoError(CoreError):
    """Raised while deriving unit/encoding for an otherwise matched channel."""


class EncodingPromotionError(CoreError):
    """Raised when no shared encoding can be derived for an output signal."""


class RateMismatchError(EncodingPromotionError):
    """Raised when the members of one output signal disagree on sample rate."""

    def __init__(self, rates, group: Any = None) -> None:
        self.rates = tuple(rates)
        self.group = group
        where = "" if group is None else f" in group {group!r}"
        super().__init__(f"multiple sample rates{where}: {list(self.rates)}")


# ---- Fatal errors ----
class InvariantViolation(CoreError):
    """Raised when an internal guarantee does not hold (a bug, not bad input)."""


class InvalidPlan(CoreError, ValueError):
    """Raised when a plan table or plan row is malformed."""


class InvalidHeader(CoreError, ValueError):
    """Raised when a ChannelHeader is constructed with invalid inputs."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ChannelNotFound(CoreError, KeyError):
    """Raised when a requested channel name is not present."""


# ---- Warnings ----
class AmbiguousChannelWarning(UserWarning):
    """Emitted in strict mode when a label matches more than one table entry."""


@dataclass(frozen=True, slots=True)
class ConversionError:
    """
    Structured error value stored in plan rows.

    - kind: exception class name (SampleInfoError, RateMismatchError, ...)
    - message: the exception message
    - context: extra fields (label, group, rates, ...)
    """
    kind: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException, **context: Any) -> "ConversionError":
        cause = exc.__cause__
        if cause is not None:
            context.setdefault("cause", f"{type(cause).__name__}: {cause}")
        return cls(kind=type(exc).__name__, message=str(exc), context=dict(context))

    @classmethod
    def parse(cls, text: str) -> "ConversionError":
        """Inverse of ``str()``, lossy on context (used when reading plan tables)."""
        kind, sep, message = text.partition(": ")
        if not sep:
            return cls(kind="Error", message=text)
        if message.endswith("]") and " [" in message:
            message = message.rpartition(" [")[0]
        return cls(kind=kind, message=message)

    def __str__(self) -> str:
        text = f"{self.kind}: {self.message}"
        if self.context:
            details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            text += f" [{details}]"
        return text
