"""Keystore capabilities consumed by key resolution and wallet registration.

The core never reaches for a global wallet. Callers pass an object satisfying
:class:`Keystore`; :class:`InMemoryKeystore` covers local use and tests, while
:class:`RPCKeystore` talks to a DigiByte Core wallet.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Protocol, Set

from .encoding import DEFAULT_NETWORK, Network, pubkey_address, script_address
from .rpc_client import RPC_INVALID_ADDRESS_OR_KEY, RPCError, RPCTransportError, format_rpc_hint

logger = logging.getLogger(__name__)


class KeystoreError(RuntimeError):
    """Raised when the backing keystore cannot answer a request."""


class RegistrationStatus(Enum):
    SUCCESS = "success"
    ALREADY_REGISTERED = "already_registered"
    FAILURE = "failure"


class Keystore(Protocol):
    """Protocol describing the keystore operations the core relies on."""

    def lookup_key_by_identifier(self, identifier: str) -> bytes | None:
        """Return the full public key bound to ``identifier`` if known."""

    def script_identifier(self, script: bytes) -> str:
        """Return the encoded address the keystore uses for ``script``."""

    def is_script_registered(self, script: bytes) -> bool:
        """Return ``True`` when ``script`` is already spendable by the keystore."""

    def register_script(self, script: bytes) -> RegistrationStatus:
        """Persist ``script``."""

    def set_label(self, identifier: str, label: str) -> None:
        """Attach an address-book label to ``identifier``."""


class InMemoryKeystore:
    """Dictionary-backed keystore."""

    def __init__(self, network: Network = DEFAULT_NETWORK) -> None:
        self.network = network
        self._keys: Dict[str, bytes] = {}
        self._scripts: Set[bytes] = set()
        self.labels: Dict[str, str] = {}

    def add_key(self, pubkey: bytes) -> str:
        """Store ``pubkey`` and return the address it is reachable under."""

        address = pubkey_address(pubkey, self.network)
        self._keys[address] = bytes(pubkey)
        return address

    def lookup_key_by_identifier(self, identifier: str) -> bytes | None:
        return self._keys.get(identifier)

    def script_identifier(self, script: bytes) -> str:
        return script_address(script, self.network)

    def is_script_registered(self, script: bytes) -> bool:
        return bytes(script) in self._scripts

    def register_script(self, script: bytes) -> RegistrationStatus:
        script = bytes(script)
        if script in self._scripts:
            return RegistrationStatus.ALREADY_REGISTERED
        self._scripts.add(script)
        return RegistrationStatus.SUCCESS

    def set_label(self, identifier: str, label: str) -> None:
        self.labels[identifier] = label


class RPCKeystore:
    """Keystore backed by a DigiByte Core wallet over JSON-RPC."""

    def __init__(self, rpc) -> None:
        self.rpc = rpc

    def lookup_key_by_identifier(self, identifier: str) -> bytes | None:
        try:
            info = self.rpc.getaddressinfo(identifier)
        except RPCError as exc:
            if exc.code == RPC_INVALID_ADDRESS_OR_KEY:
                return None
            raise KeystoreError(_describe(exc)) from exc
        except RPCTransportError as exc:
            raise KeystoreError(str(exc)) from exc

        pubkey_hex = info.get("pubkey") if isinstance(info, dict) else None
        if not pubkey_hex:
            logger.debug("Wallet knows %s but has no full public key for it", identifier)
            return None
        try:
            return bytes.fromhex(pubkey_hex)
        except ValueError:
            logger.debug("Wallet returned non-hex pubkey for %s: %r", identifier, pubkey_hex)
            return None

    def script_identifier(self, script: bytes) -> str:
        try:
            decoded = self.rpc.decodescript(script.hex())
        except (RPCError, RPCTransportError) as exc:
            raise KeystoreError(_describe(exc)) from exc
        address = decoded.get("p2sh") if isinstance(decoded, dict) else None
        if not address:
            raise KeystoreError("node did not return a P2SH address for the script")
        return address

    def is_script_registered(self, script: bytes) -> bool:
        address = self.script_identifier(script)
        try:
            info = self.rpc.getaddressinfo(address)
        except RPCError as exc:
            if exc.code == RPC_INVALID_ADDRESS_OR_KEY:
                return False
            raise KeystoreError(_describe(exc)) from exc
        except RPCTransportError as exc:
            raise KeystoreError(str(exc)) from exc
        # importaddress leaves the script watch-only
        return bool(info.get("ismine") or info.get("iswatchonly"))

    def register_script(self, script: bytes) -> RegistrationStatus:
        try:
            self.rpc.importaddress(script.hex(), "", False, True)
        except RPCError as exc:
            logger.error("importaddress failed: %s", exc)
            if "already" in exc.message.lower():
                return RegistrationStatus.ALREADY_REGISTERED
            return RegistrationStatus.FAILURE
        except RPCTransportError as exc:
            logger.error("importaddress failed: %s", exc)
            return RegistrationStatus.FAILURE
        return RegistrationStatus.SUCCESS

    def set_label(self, identifier: str, label: str) -> None:
        try:
            self.rpc.setlabel(identifier, label)
        except (RPCError, RPCTransportError) as exc:
            raise KeystoreError(_describe(exc)) from exc


def _describe(exc: Exception) -> str:
    hint = format_rpc_hint(exc) if isinstance(exc, RPCError) else None
    return f"{exc}\nHint: {hint}" if hint else str(exc)
