"""Multisignature policy construction.

:func:`build_policy` is the single assembly point: it validates the threshold
and owner count, resolves owner keys, and builds the redeem script and its
address. :func:`policy_from_text` parses any accepted redeem grammar and then
calls :func:`build_policy`. Neither raises for bad input; a failure produces
an inert :class:`MultisigPolicy` whose ``error_status`` explains what went
wrong.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from .encoding import DEFAULT_NETWORK, Network, script_address
from .errors import MultisigError
from .keys import PointValidator, PublicKey, is_fully_valid_point, resolve_owner_keys
from .keystore import Keystore
from .parser import parse_redeem_text
from .script import build_multisig_script
from .validation import validate_configuration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MultisigPolicy:
    """An M-of-N policy, its redeem script, and its P2SH address.

    Instances are either fully valid or inert. An inert policy has an empty
    script, address and key list, and a non-empty ``error_status``.
    """

    signatures_required: int | None = None
    owner_keys: Tuple[PublicKey, ...] = ()
    redeem_script: bytes = b""
    address: str = ""
    network: Network = DEFAULT_NETWORK
    error_status: str = ""
    error_kind: str | None = None

    @classmethod
    def from_owners(
        cls,
        signatures_required: int | None,
        owners: Sequence[str],
        *,
        keystore: Keystore | None = None,
        network: Network = DEFAULT_NETWORK,
    ) -> "MultisigPolicy":
        return build_policy(signatures_required, owners, keystore=keystore, network=network)

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        keystore: Keystore | None = None,
        network: Network = DEFAULT_NETWORK,
    ) -> "MultisigPolicy":
        return policy_from_text(text, keystore=keystore, network=network)

    @classmethod
    def failed(cls, error: MultisigError, network: Network = DEFAULT_NETWORK) -> "MultisigPolicy":
        logger.info("Multisignature policy rejected: %s", error)
        return cls(network=network, error_status=str(error) or error.kind, error_kind=error.kind)

    @property
    def is_valid(self) -> bool:
        return not self.error_status

    @property
    def owner_count(self) -> int | None:
        return len(self.owner_keys) if self.is_valid else None

    def to_hex(self) -> str:
        return self.redeem_script.hex()

    def to_spaced(self) -> str:
        # No owner-count token: counts 10-15 read as hex and would be taken
        # for an owner when parsed back.
        if not self.is_valid:
            return ""
        tokens = [str(self.signatures_required)]
        tokens.extend(key.hex() for key in self.owner_keys)
        tokens.append("OP_CHECKMULTISIG")
        return " ".join(tokens)

    def to_structured(self) -> str:
        if not self.is_valid:
            return ""
        keys = ",".join(f'"{key.hex()}"' for key in self.owner_keys)
        return f"{self.signatures_required} [{keys}]"

    def to_dict(self) -> dict[str, Any]:
        if not self.is_valid:
            return {"error": self.error_status, "errorKind": self.error_kind}
        return {
            "address": self.address,
            "redeemScript": self.to_hex(),
            "signaturesRequired": self.signatures_required,
            "owners": [key.hex() for key in self.owner_keys],
            "network": self.network.name,
        }


def build_policy(
    signatures_required: int | None,
    owners: Sequence[str],
    *,
    keystore: Keystore | None = None,
    network: Network = DEFAULT_NETWORK,
    point_validator: PointValidator = is_fully_valid_point,
) -> MultisigPolicy:
    """Validate, resolve, and build a policy from a threshold and owner strings."""

    owners = list(owners)
    error = validate_configuration(signatures_required, len(owners))
    if error is not None:
        return MultisigPolicy.failed(error, network)

    resolved = resolve_owner_keys(
        owners, keystore=keystore, network=network, point_validator=point_validator
    )
    if not resolved.is_ok:
        return MultisigPolicy.failed(resolved.error, network)
    keys = resolved.value

    # Skipped owners shrink the key list; recheck bounds against what is left.
    if len(keys) != len(owners):
        error = validate_configuration(signatures_required, len(keys))
        if error is not None:
            return MultisigPolicy.failed(error, network)

    redeem_script = build_multisig_script(signatures_required, [key.data for key in keys])
    return MultisigPolicy(
        signatures_required=signatures_required,
        owner_keys=tuple(keys),
        redeem_script=redeem_script,
        address=script_address(redeem_script, network),
        network=network,
    )


def policy_from_text(
    text: str,
    *,
    keystore: Keystore | None = None,
    network: Network = DEFAULT_NETWORK,
    point_validator: PointValidator = is_fully_valid_point,
) -> MultisigPolicy:
    """Parse structured, compiled, or spaced redeem text into a policy."""

    parsed = parse_redeem_text(text)
    if not parsed.is_ok:
        return MultisigPolicy.failed(parsed.error, network)
    return build_policy(
        parsed.value.signatures_required,
        parsed.value.owners,
        keystore=keystore,
        network=network,
        point_validator=point_validator,
    )
