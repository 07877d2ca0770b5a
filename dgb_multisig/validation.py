"""Threshold and owner-count bounds checks."""

from __future__ import annotations

from .errors import ConfigurationError
from .script import MAX_MULTISIG_OWNERS


def validate_configuration(
    signatures_required: int | None, owner_count: int | None
) -> ConfigurationError | None:
    """Return a :class:`ConfigurationError` if the bounds are violated.

    ``None`` for either argument means the value could not be read. Checks run
    in a fixed order and only the first failure is reported.
    """

    if signatures_required is None or owner_count is None:
        return ConfigurationError("missing input")
    if owner_count < 1:
        return ConfigurationError("requires at least one key")
    if owner_count < signatures_required:
        return ConfigurationError(
            f"insufficient keys: have {owner_count}, need {signatures_required}"
        )
    if owner_count > MAX_MULTISIG_OWNERS:
        return ConfigurationError(f"too many owners (max {MAX_MULTISIG_OWNERS})")
    if signatures_required < 1:
        return ConfigurationError("requires at least one signature")
    return None
