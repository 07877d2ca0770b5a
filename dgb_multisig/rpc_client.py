"""Typed JSON-RPC client for DigiByte Core nodes.

The client backs :class:`dgb_multisig.keystore.RPCKeystore`: it resolves
addresses to public keys, asks the node for script addresses, and imports
redeem scripts into a loaded wallet. Configuration is shared via
:func:`dgb_multisig.config.load_rpc_config`. No consensus logic is implemented
here; the client forwards well-typed requests and surfaces errors clearly.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Optional

import requests
from requests import RequestException, Response

from .config import RPCConfig

logger = logging.getLogger(__name__)

RPC_INVALID_ADDRESS_OR_KEY = -5


class RPCError(RuntimeError):
    """Raised when the DigiByte node responds with an RPC error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


def format_rpc_hint(error_obj: dict[str, Any] | RPCError | None) -> str | None:
    """Return a human-friendly hint for common wallet JSON-RPC errors."""

    if error_obj is None:
        return None

    code = None
    message = ""
    if isinstance(error_obj, RPCError):
        code = error_obj.code
        message = error_obj.message
    elif isinstance(error_obj, dict):
        code = error_obj.get("code")
        message = str(error_obj.get("message", ""))

    if code == -13 or "wallet passphrase" in message.lower() or "wallet locked" in message.lower():
        return (
            "The wallet is locked. Unlock it with walletpassphrase (or via the GUI), then retry the command."
        )
    if code in {-18, -19}:
        return (
            "No wallet is loaded or more than one is. Load the wallet and set DGB_RPC_WALLET "
            "(or rpc.wallet in ~/.dgb-multisig.yaml) to its name."
        )
    if code == -4 and "descriptor" in message.lower():
        return (
            "importaddress only works with legacy wallets. Use a legacy wallet to register "
            "bare redeem scripts."
        )
    if code == RPC_INVALID_ADDRESS_OR_KEY and "address" in message.lower():
        return "The node does not recognise the address; check that --network matches the node."
    return None


class RPCTransportError(RuntimeError):
    """Raised when the RPC endpoint is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DigiByteRPCClient:
    """Typed JSON-RPC client for DigiByte Core compatible nodes.

    Each helper maps directly to an RPC method exposed by the node and returns
    the parsed JSON response.
    """

    def __init__(self, config: RPCConfig) -> None:
        self.config = config
        self._session = requests.Session()
        self._base_url = config.base_url
        self._wallet = config.wallet

    def call(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """Perform a JSON-RPC request."""

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self._url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                auth=(self.config.user, self.config.password),
                timeout=30,
            )
        except RequestException as exc:
            logger.error(
                "RPC connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise RPCTransportError(
                "RPC connection failed. Ensure your DigiByte node is reachable, authentication is valid, "
                "and DGB_RPC_* variables (or ~/.dgb-multisig.yaml) point to the right host and port."
            ) from exc

        # DigiByte Core reports JSON-RPC errors with HTTP 500; the body still
        # carries the structured error, so only bail on a non-JSON reply.
        try:
            result = response.json()
        except ValueError as exc:
            self._raise_for_status(response)
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("RPC server returned malformed JSON") from exc
        if not isinstance(result, dict):
            raise RPCTransportError("RPC server returned an unexpected payload")
        if result.get("error"):
            error = result["error"]
            raise RPCError(error.get("code", -1), error.get("message", "unknown"))
        self._raise_for_status(response)
        return result.get("result")

    def _raise_for_status(self, response: Response) -> None:
        if response.ok:
            return
        logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
        if response.status_code == 401:
            raise RPCTransportError(
                "Unauthorized (401). Ensure DGB_RPC_USER/DGB_RPC_PASSWORD (or your .dgb-multisig.yaml) contain valid credentials.",
                status_code=response.status_code,
            )
        raise RPCTransportError(
            "RPC server returned an HTTP error; check the URL, wallet path, authentication, and DGB_RPC_* settings.",
            status_code=response.status_code,
        )

    @property
    def _url(self) -> str:
        if self._wallet:
            return f"{self._base_url}/wallet/{self._wallet}"
        return self._base_url

    # Convenience wrappers -------------------------------------------------

    def getaddressinfo(self, address: str) -> Dict[str, Any]:
        return self.call("getaddressinfo", [address])

    def decodescript(self, script_hex: str) -> Dict[str, Any]:
        return self.call("decodescript", [script_hex])

    def importaddress(
        self, script_hex: str, label: str = "", rescan: bool = False, p2sh: bool = True
    ) -> None:
        return self.call("importaddress", [script_hex, label, rescan, p2sh])

    def setlabel(self, address: str, label: str) -> None:
        return self.call("setlabel", [address, label])
