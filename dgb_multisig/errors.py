"""Error taxonomy and stage results for multisignature construction.

Construction stages never raise across the public boundary. Each stage returns
a :class:`StageResult` holding either a value or one of the
:class:`MultisigError` subclasses below, and the policy assembly turns the
first error it sees into an inert policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class MultisigError(RuntimeError):
    """Base class for multisignature policy failures."""

    kind = "multisig"


class ConfigurationError(MultisigError):
    """Raised when the threshold or owner count is out of bounds."""

    kind = "configuration"


class KeyResolutionError(MultisigError):
    """Raised when an owner string cannot be turned into a usable key."""

    kind = "key_resolution"


class ScriptParseError(MultisigError):
    """Raised when redeem text matches none of the accepted grammars."""

    kind = "script_parse"


class RegistrationError(MultisigError):
    """Raised when a keystore refuses or fails to register a script."""

    kind = "registration"


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of a single construction stage."""

    value: T | None = None
    error: MultisigError | None = None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: MultisigError) -> "StageResult[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None
