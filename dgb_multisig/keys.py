"""Owner key resolution.

Owner strings arrive either as hex-encoded public keys or as wallet addresses
whose full public key lives in a :class:`~dgb_multisig.keystore.Keystore`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Sequence

from cryptography.hazmat.primitives.asymmetric import ec

from .encoding import DEFAULT_NETWORK, Network, identifier_version
from .errors import KeyResolutionError, StageResult
from .keystore import Keystore, KeystoreError

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})+$")

PointValidator = Callable[[bytes], bool]


def is_hex(value: str) -> bool:
    """Return True for a non-empty, even-length string of hex digits."""

    return bool(_HEX_RE.match(value))


def is_fully_valid_point(data: bytes) -> bool:
    """Return True when ``data`` encodes a point on secp256k1.

    Compressed (33 byte) and uncompressed (65 byte) SEC1 encodings are
    accepted.
    """

    if len(data) not in (33, 65):
        return False
    try:
        ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), bytes(data))
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class PublicKey:
    """Serialized public key of a multisignature owner."""

    data: bytes

    @classmethod
    def from_hex(cls, value: str) -> "PublicKey":
        return cls(bytes.fromhex(value))

    def hex(self) -> str:
        return self.data.hex()

    def __bytes__(self) -> bytes:
        return self.data


def resolve_owner_keys(
    owners: Sequence[str],
    *,
    keystore: Keystore | None = None,
    network: Network = DEFAULT_NETWORK,
    point_validator: PointValidator = is_fully_valid_point,
) -> StageResult[List[PublicKey]]:
    """Turn owner strings into public keys, keeping their order.

    Resolution stops at the first unusable string. A hex string whose bytes
    are not a valid point is skipped rather than rejected.
    """

    keys: List[PublicKey] = []
    for owner in owners:
        if keystore is not None and identifier_version(owner, network) is not None:
            result = _lookup_identifier(owner, keystore, network, point_validator)
            if not result.is_ok:
                return StageResult.failure(result.error)
            keys.append(result.value)
        elif is_hex(owner):
            data = bytes.fromhex(owner)
            if point_validator(data):
                keys.append(PublicKey(data))
            else:
                logger.debug("Skipping hex owner that is not a valid point: %s", owner)
        else:
            return StageResult.failure(KeyResolutionError(f"not a valid public key: {owner}"))
    return StageResult.success(keys)


def _lookup_identifier(
    identifier: str,
    keystore: Keystore,
    network: Network,
    point_validator: PointValidator,
) -> StageResult[PublicKey]:
    if identifier_version(identifier, network) != "pubkey":
        return StageResult.failure(KeyResolutionError(f"{identifier} does not refer to a key"))
    try:
        data = keystore.lookup_key_by_identifier(identifier)
    except KeystoreError as exc:
        return StageResult.failure(
            KeyResolutionError(f"keystore lookup failed for {identifier}: {exc}")
        )
    if data is None:
        return StageResult.failure(KeyResolutionError(f"no usable key for identifier {identifier}"))
    if not point_validator(data):
        return StageResult.failure(
            KeyResolutionError(f"no usable key for identifier {identifier}: invalid public key")
        )
    return StageResult.success(PublicKey(bytes(data)))
