from __future__ import annotations

import pytest

from dgb_multisig.encoding import NETWORKS, base58check_decode, encode_identifier, hash160
from dgb_multisig.keys import PublicKey
from dgb_multisig.keystore import InMemoryKeystore
from dgb_multisig.policy import MultisigPolicy, build_policy, policy_from_text

from conftest import K1, K2, K3, K4, OFF_CURVE, accept_33_bytes, fake_key


def _expected_script(required: int, keys: list[str]) -> bytes:
    script = bytes([0x50 + required])
    for key in keys:
        script += b"\x21" + bytes.fromhex(key)
    return script + bytes([0x50 + len(keys), 0xAE])


def test_two_of_three_script_and_address(owner_keys: list[str]) -> None:
    policy = MultisigPolicy.from_owners(2, owner_keys)

    assert policy.is_valid
    assert policy.error_status == ""
    assert policy.redeem_script == _expected_script(2, owner_keys)
    assert policy.address == encode_identifier(hash160(policy.redeem_script), NETWORKS["digibyte"])
    assert policy.signatures_required == 2
    assert policy.owner_count == 3
    assert [key.hex() for key in policy.owner_keys] == owner_keys


def test_address_decodes_to_script_hash_with_script_prefix() -> None:
    policy = MultisigPolicy.from_owners(2, [K1, K2, K3])

    decoded = base58check_decode(policy.address)
    assert policy.address.startswith("S")
    assert decoded[0] == NETWORKS["digibyte"].script_prefix
    assert decoded[1:] == hash160(policy.redeem_script)


def test_build_is_deterministic(owner_keys: list[str]) -> None:
    first = build_policy(2, owner_keys)
    second = build_policy(2, list(owner_keys))
    assert first == second
    assert first.redeem_script == second.redeem_script


def test_owner_order_changes_address() -> None:
    forward = build_policy(2, [K1, K2, K3])
    reverse = build_policy(2, [K3, K2, K1])
    assert forward.address != reverse.address


def test_network_selects_address_prefix(owner_keys: list[str]) -> None:
    mainnet = build_policy(2, owner_keys)
    pivx = build_policy(2, owner_keys, network=NETWORKS["pivx"])
    assert mainnet.redeem_script == pivx.redeem_script
    assert mainnet.address != pivx.address
    assert pivx.network.name == "pivx"


@pytest.mark.parametrize("n", [1, 2, 7, 15])
def test_threshold_and_owners_survive_for_all_sizes(n: int) -> None:
    keys = [fake_key(i) for i in range(n)]
    for m in range(1, n + 1):
        policy = build_policy(m, keys, point_validator=accept_33_bytes)
        assert policy.is_valid, policy.error_status
        assert policy.signatures_required == m
        assert [key.hex() for key in policy.owner_keys] == keys


@pytest.mark.parametrize("n", [1, 3, 15])
def test_spaced_rendering_round_trips(n: int) -> None:
    keys = [fake_key(i) for i in range(n)]
    policy = build_policy(1, keys, point_validator=accept_33_bytes)
    reparsed = policy_from_text(policy.to_spaced(), point_validator=accept_33_bytes)
    assert reparsed.redeem_script == policy.redeem_script


def test_renderings_reparse_to_identical_policy(owner_keys: list[str]) -> None:
    policy = build_policy(2, owner_keys)
    for text in (policy.to_spaced(), policy.to_structured(), policy.to_hex()):
        assert policy_from_text(text) == policy


def test_structured_form_matches_direct_construction(owner_keys: list[str]) -> None:
    text = "2 [" + ",".join(f'"{key}"' for key in owner_keys) + "]"
    assert MultisigPolicy.from_text(text) == MultisigPolicy.from_owners(2, owner_keys)


def test_compiled_form_recovers_threshold_and_owners(owner_keys: list[str]) -> None:
    policy = policy_from_text(_expected_script(2, owner_keys).hex())
    assert policy.signatures_required == 2
    assert [key.hex() for key in policy.owner_keys] == owner_keys


def test_threshold_above_owner_count_is_inert(owner_keys: list[str]) -> None:
    policy = build_policy(4, owner_keys)
    assert not policy.is_valid
    assert policy.error_kind == "configuration"
    assert policy.error_status == "insufficient keys: have 3, need 4"
    assert policy.redeem_script == b""
    assert policy.address == ""
    assert policy.owner_keys == ()
    assert policy.owner_count is None
    assert policy.signatures_required is None


def test_more_than_fifteen_owners_is_rejected() -> None:
    keys = [fake_key(i) for i in range(16)]
    policy = build_policy(2, keys, point_validator=accept_33_bytes)
    assert policy.error_kind == "configuration"
    assert policy.error_status == "too many owners (max 15)"


def test_unresolvable_owner_leaks_no_keys() -> None:
    policy = build_policy(1, [K1, K2, "bogus"])
    assert policy.error_kind == "key_resolution"
    assert policy.owner_keys == ()
    assert policy.redeem_script == b""


def test_skipped_owner_is_dropped_from_script() -> None:
    policy = build_policy(2, [K1, OFF_CURVE, K2])
    assert policy.is_valid
    assert policy.owner_count == 2
    assert policy.redeem_script == _expected_script(2, [K1, K2])


def test_skipped_owners_recheck_threshold() -> None:
    policy = build_policy(2, [K1, OFF_CURVE])
    assert policy.error_kind == "configuration"
    assert policy.error_status == "insufficient keys: have 1, need 2"


def test_two_digit_owner_count_token_is_skipped_on_reparse() -> None:
    keys = [fake_key(i) for i in range(12)]
    policy = build_policy(3, keys, point_validator=accept_33_bytes)
    reparsed = policy_from_text(policy.to_hex(), point_validator=accept_33_bytes)
    assert reparsed.owner_count == 12
    assert reparsed.redeem_script == policy.redeem_script


def test_fifteen_owner_script_hex_counts_owner_token_as_candidate() -> None:
    # The "15" owner-count token survives the trailing-token heuristic, so the
    # candidate list is 16 long and fails the owner bound before resolution.
    keys = [fake_key(i) for i in range(15)]
    policy = build_policy(1, keys, point_validator=accept_33_bytes)
    reparsed = policy_from_text(policy.to_hex(), point_validator=accept_33_bytes)
    assert reparsed.error_status == "too many owners (max 15)"


def test_spaced_rendering_omits_owner_count(owner_keys: list[str]) -> None:
    policy = build_policy(2, owner_keys)
    assert policy.to_spaced() == f"2 {K1} {K2} {K3} OP_CHECKMULTISIG"
    assert policy.to_structured() == f'2 ["{K1}","{K2}","{K3}"]'


def test_parse_failure_is_inert() -> None:
    policy = MultisigPolicy.from_text("garbage")
    assert policy.error_kind == "script_parse"
    assert policy.error_status == "failed to read required signatures"
    assert policy.to_spaced() == ""
    assert policy.to_dict() == {
        "error": "failed to read required signatures",
        "errorKind": "script_parse",
    }


def test_missing_threshold_is_configuration_error() -> None:
    policy = build_policy(None, [K1])
    assert policy.error_status == "missing input"


def test_owner_addresses_resolve_through_keystore() -> None:
    keystore = InMemoryKeystore()
    address = keystore.add_key(bytes.fromhex(K4))
    policy = build_policy(1, [K1, address], keystore=keystore)
    assert policy.owner_keys == (PublicKey.from_hex(K1), PublicKey.from_hex(K4))


def test_to_dict_reports_policy(owner_keys: list[str]) -> None:
    policy = build_policy(2, owner_keys)
    data = policy.to_dict()
    assert data["address"] == policy.address
    assert data["redeemScript"] == policy.redeem_script.hex()
    assert data["signaturesRequired"] == 2
    assert data["owners"] == owner_keys
    assert data["network"] == "digibyte"
