"""Build a 2-of-3 policy from wallet addresses and register it.

Owners may be given as hex public keys or as addresses whose full public key
the connected DigiByte Core wallet knows. RPC settings come from the usual
``DGB_RPC_*`` variables or ``~/.dgb-multisig.yaml``.
"""

from __future__ import annotations

import logging
import sys

from dgb_multisig import MultisigPolicy, RPCKeystore, WalletRegistrar, get_network
from dgb_multisig.config import load_network_name, load_rpc_config
from dgb_multisig.rpc_client import DigiByteRPCClient

logger = logging.getLogger(__name__)

LABEL = "multisig-2of3"


def main(owners: list[str]) -> int:
    logging.basicConfig(level=logging.INFO)
    network = get_network(load_network_name())
    keystore = RPCKeystore(DigiByteRPCClient(load_rpc_config()))

    policy = MultisigPolicy.from_owners(2, owners, keystore=keystore, network=network)
    if not policy.is_valid:
        logger.error("Could not build policy: %s", policy.error_status)
        return 1
    print(policy.to_spaced())
    print(policy.address)

    result = WalletRegistrar(keystore).add_to_wallet(policy, label=LABEL)
    if not result.is_ok:
        logger.warning("Not registered: %s", result.error)
        return 1
    print(f"registered as {result.address}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
