"""Multisignature redeem script and address tooling for DigiByte-style chains."""

from .encoding import DEFAULT_NETWORK, NETWORKS, Network, get_network
from .errors import (
    ConfigurationError,
    KeyResolutionError,
    MultisigError,
    RegistrationError,
    ScriptParseError,
    StageResult,
)
from .keys import PublicKey, is_fully_valid_point, resolve_owner_keys
from .keystore import InMemoryKeystore, Keystore, KeystoreError, RegistrationStatus, RPCKeystore
from .parser import ParsedRedeem, RedeemForm, parse_redeem_text
from .policy import MultisigPolicy, build_policy, policy_from_text
from .registrar import RegistrationResult, WalletRegistrar
from .validation import validate_configuration

__all__ = [
    "DEFAULT_NETWORK",
    "NETWORKS",
    "Network",
    "get_network",
    "ConfigurationError",
    "KeyResolutionError",
    "MultisigError",
    "RegistrationError",
    "ScriptParseError",
    "StageResult",
    "PublicKey",
    "is_fully_valid_point",
    "resolve_owner_keys",
    "InMemoryKeystore",
    "Keystore",
    "KeystoreError",
    "RegistrationStatus",
    "RPCKeystore",
    "ParsedRedeem",
    "RedeemForm",
    "parse_redeem_text",
    "MultisigPolicy",
    "build_policy",
    "policy_from_text",
    "RegistrationResult",
    "WalletRegistrar",
    "validate_configuration",
]
