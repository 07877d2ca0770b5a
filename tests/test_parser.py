from __future__ import annotations

import pytest

from dgb_multisig.errors import ScriptParseError
from dgb_multisig.parser import (
    RedeemForm,
    detect_form,
    parse_compiled,
    parse_redeem_text,
    parse_spaced,
    parse_structured,
)
from dgb_multisig.script import build_multisig_script

from conftest import K1, K2, K3, fake_key


@pytest.mark.parametrize(
    "text, form",
    [
        (f'2 ["{K1}"]', RedeemForm.STRUCTURED),
        ("52ae", RedeemForm.COMPILED),
        (f"1 {K1} 1 OP_CHECKMULTISIG", RedeemForm.SPACED),
        ("", RedeemForm.SPACED),
        ("[ only open", RedeemForm.SPACED),
    ],
)
def test_detect_form(text: str, form: RedeemForm) -> None:
    assert detect_form(text) is form


def test_parse_structured_extracts_threshold_and_keys() -> None:
    result = parse_structured(f'2 ["{K1}","{K2}", "{K3}"]')
    assert result.is_ok
    assert result.value.signatures_required == 2
    assert result.value.owners == [K1, K2, K3]
    assert result.value.form is RedeemForm.STRUCTURED


def test_parse_structured_accepts_two_digit_threshold() -> None:
    result = parse_structured('12 ["aa"]')
    assert result.value.signatures_required == 12


def test_parse_structured_reads_only_last_two_digits_of_longer_prefix() -> None:
    # Thresholds never exceed 15, so the pattern stops at two digits.
    result = parse_structured('100 ["aa"]')
    assert result.value.signatures_required == 0
    result = parse_structured('123 ["aa"]')
    assert result.value.signatures_required == 23


def test_parse_structured_without_threshold_fails() -> None:
    result = parse_structured('["aa","bb"]')
    assert isinstance(result.error, ScriptParseError)
    assert str(result.error) == "failed to read required signatures"


def test_parse_structured_ignores_quoted_tokens_outside_brackets() -> None:
    result = parse_structured('1 ["aa"] "bb"')
    assert result.value.owners == ["aa"]


def test_parse_spaced_drops_opcode_and_owner_count() -> None:
    result = parse_spaced(f"2 {K1} {K2} {K3} 3 OP_CHECKMULTISIG")
    assert result.value.signatures_required == 2
    assert result.value.owners == [K1, K2, K3]


@pytest.mark.parametrize(
    "text",
    [
        f"2 {K1} {K2} {K3}",
        f"2 {K1} {K2} {K3} 3",
        f"2 {K1} {K2} {K3} CHECKMULTISIG",
        f"  2   {K1} {K2}\t{K3} 3 OP_CHECKMULTISIG  ",
    ],
)
def test_parse_spaced_trailing_tokens_are_optional(text: str) -> None:
    result = parse_spaced(text)
    assert result.value.owners == [K1, K2, K3]


@pytest.mark.parametrize("text", ["", "two aa bb", "-1 aa", "OP_2 aa"])
def test_parse_spaced_requires_numeric_threshold(text: str) -> None:
    result = parse_spaced(text)
    assert isinstance(result.error, ScriptParseError)
    assert str(result.error) == "failed to read required signatures"


def test_parse_spaced_drops_non_hex_final_owner() -> None:
    # The trailing non-hex token is treated as the owner count, even when it
    # was meant as a key.
    result = parse_spaced(f"1 {K1} {K2}zz")
    assert result.value.owners == [K1]


def test_parse_spaced_keeps_hex_looking_owner_count() -> None:
    # "12" is even-length hex, so it stays in the owner list as a candidate.
    result = parse_spaced("2 aa bb 12")
    assert result.value.owners == ["aa", "bb", "12"]


def test_parse_compiled_reads_script_hex() -> None:
    keys = [bytes.fromhex(k) for k in (K1, K2, K3)]
    result = parse_compiled(build_multisig_script(2, keys).hex())
    assert result.value.signatures_required == 2
    assert result.value.owners == [K1, K2, K3]
    assert result.value.form is RedeemForm.COMPILED


def test_parse_compiled_without_checkmultisig() -> None:
    script = build_multisig_script(1, [bytes.fromhex(K1)])[:-1]
    result = parse_compiled(script.hex())
    assert result.value.owners == [K1]


def test_parse_compiled_reports_truncated_script() -> None:
    result = parse_compiled("5221" + "02" * 5)
    assert isinstance(result.error, ScriptParseError)
    assert "malformed script" in str(result.error)


def test_parse_compiled_leaves_two_digit_owner_count_as_candidate() -> None:
    keys = [bytes.fromhex(fake_key(i)) for i in range(12)]
    result = parse_compiled(build_multisig_script(2, keys).hex())
    assert result.value.owners == [fake_key(i) for i in range(12)] + ["12"]


def test_parse_redeem_text_strips_surrounding_whitespace() -> None:
    keys = [bytes.fromhex(K1)]
    result = parse_redeem_text("\n" + build_multisig_script(1, keys).hex() + "\n")
    assert result.value.form is RedeemForm.COMPILED
    assert result.value.owners == [K1]
