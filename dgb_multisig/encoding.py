"""Address encoding helpers for multisignature policies.

Addresses are Base58Check strings: a one byte network version followed by the
HASH160 of either a public key (pay-to-pubkey-hash) or a redeem script
(pay-to-script-hash), plus a four byte double-SHA256 checksum.
"""

from __future__ import annotations

import binascii
import hashlib
from dataclasses import dataclass
from typing import Dict, List

b58_digits = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

HASH160_SIZE = 20


@dataclass(frozen=True)
class Network:
    """Version bytes used when encoding addresses for a chain."""

    name: str
    pubkey_prefix: int
    script_prefix: int


NETWORKS: Dict[str, Network] = {
    "digibyte": Network("digibyte", pubkey_prefix=30, script_prefix=63),
    "digibyte-testnet": Network("digibyte-testnet", pubkey_prefix=126, script_prefix=140),
    "pivx": Network("pivx", pubkey_prefix=30, script_prefix=13),
}

DEFAULT_NETWORK = NETWORKS["digibyte"]


def get_network(name: str) -> Network:
    """Return the :class:`Network` registered under ``name``."""

    try:
        return NETWORKS[name.strip().lower()]
    except KeyError as exc:
        known = ", ".join(sorted(NETWORKS))
        raise ValueError(f"Unknown network '{name}' (expected one of: {known})") from exc


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """Return RIPEMD160(SHA256(data))."""

    return hashlib.new("ripemd160", hashlib.sha256(data).digest()).digest()


def base58check_encode(payload: bytes, version: bytes) -> str:
    """Encode bytes into a Base58Check string with the provided version byte."""
    data = version + payload
    checksum = _double_sha256(data)[:4]
    address_bytes = data + checksum

    value = int("0x0" + binascii.hexlify(address_bytes).decode("utf8"), 16)

    output: List[str] = []
    while value > 0:
        value, remainder = divmod(value, 58)
        output.append(b58_digits[remainder])
    encoded = "".join(output[::-1])

    leading_zero_count = 0
    for byte in address_bytes:
        if byte == 0:
            leading_zero_count += 1
        else:
            break

    return b58_digits[0] * leading_zero_count + encoded


def base58check_decode(value: str) -> bytes:
    """Decode a Base58Check string, returning ``version + payload``.

    Raises :class:`ValueError` for characters outside the alphabet, short
    input, or a checksum mismatch.
    """
    if not value:
        raise ValueError("Base58 string is empty")

    number = 0
    for character in value:
        index = b58_digits.find(character)
        if index == -1:
            raise ValueError(f"Invalid Base58 character: {character}")
        number = number * 58 + index

    decoded = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    padding = len(value) - len(value.lstrip(b58_digits[0]))
    raw = b"\x00" * padding + decoded
    if len(raw) < 5:
        raise ValueError("Base58Check string is too short")

    data, checksum = raw[:-4], raw[-4:]
    if _double_sha256(data)[:4] != checksum:
        raise ValueError("Base58Check checksum mismatch")
    return data


def encode_identifier(script_hash: bytes, network: Network = DEFAULT_NETWORK) -> str:
    """Encode a script HASH160 as a pay-to-script-hash address."""

    return base58check_encode(script_hash, bytes([network.script_prefix]))


def script_address(script: bytes, network: Network = DEFAULT_NETWORK) -> str:
    """Return the pay-to-script-hash address committing to ``script``."""

    return encode_identifier(hash160(script), network)


def pubkey_address(pubkey: bytes, network: Network = DEFAULT_NETWORK) -> str:
    """Return the pay-to-pubkey-hash address for ``pubkey``."""

    return base58check_encode(hash160(pubkey), bytes([network.pubkey_prefix]))


def identifier_version(value: str, network: Network = DEFAULT_NETWORK) -> str | None:
    """Classify ``value`` as a ``"pubkey"`` or ``"script"`` address of ``network``.

    Returns ``None`` when the string is not a well-formed address for the
    network.
    """

    try:
        data = base58check_decode(value)
    except ValueError:
        return None
    if len(data) != 1 + HASH160_SIZE:
        return None
    if data[0] == network.pubkey_prefix:
        return "pubkey"
    if data[0] == network.script_prefix:
        return "script"
    return None
