"""Register built multisignature scripts with a keystore."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .errors import RegistrationError
from .keystore import Keystore, KeystoreError, RegistrationStatus
from .policy import MultisigPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of :meth:`WalletRegistrar.add_to_wallet`."""

    address: str | None = None
    error: RegistrationError | None = None

    @property
    def is_ok(self) -> bool:
        return self.error is None


class WalletRegistrar:
    """Adds redeem scripts to a keystore and labels their address.

    The existence check, the insert and the label update run under one lock
    so concurrent callers sharing a keystore cannot register a script twice.
    """

    def __init__(self, keystore: Keystore, lock: threading.Lock | None = None) -> None:
        self.keystore = keystore
        self._lock = lock or threading.Lock()

    def add_to_wallet(self, policy: MultisigPolicy, label: str = "") -> RegistrationResult:
        if not policy.is_valid:
            return self._fail("cannot register an invalid multisignature policy")

        script = policy.redeem_script
        with self._lock:
            try:
                if self.keystore.is_script_registered(script):
                    return self._fail("the wallet already contains this script")

                status = self.keystore.register_script(script)
                if status is RegistrationStatus.ALREADY_REGISTERED:
                    return self._fail("address invalid or already exists")
                if status is not RegistrationStatus.SUCCESS:
                    return self._fail("failed to add script to wallet")

                address = self.keystore.script_identifier(script)
                self.keystore.set_label(address, label)
            except KeystoreError as exc:
                return self._fail(f"keystore error: {exc}")

        logger.info("Registered %d-of-%d script as %s", policy.signatures_required, policy.owner_count, address)
        return RegistrationResult(address=address)

    @staticmethod
    def _fail(message: str) -> RegistrationResult:
        logger.warning("Registration failed: %s", message)
        return RegistrationResult(error=RegistrationError(message))
