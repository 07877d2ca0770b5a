"""Redeem text parsing.

Three grammars are accepted and each is handled by its own parser. All of them
reduce the input to ``(signatures_required, owner strings)``:

* structured: ``2 ["02ab...","03cd..."]`` as printed by wallet RPC helpers;
* compiled: the redeem script as one hex string;
* spaced: ``2 02ab... 03cd... 2 OP_CHECKMULTISIG`` (script asm).

The compiled form is rendered as asm and handed to the spaced parser so there
is exactly one textual grammar that yields owner lists from scripts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .errors import ScriptParseError, StageResult
from .keys import is_hex
from .script import OP_CHECKMULTISIG, deserialize_script, script_to_asm

CHECKMULTISIG_TOKENS = frozenset({"OP_CHECKMULTISIG", "CHECKMULTISIG"})

# Thresholds are at most 15, so two digits are all this pattern reads.
_STRUCTURED_THRESHOLD_RE = re.compile(r"([0-9][0-9]?)\s*\[")
_QUOTED_KEY_RE = re.compile(r'"([A-Za-z0-9]+)"')


class RedeemForm(Enum):
    STRUCTURED = "structured"
    COMPILED = "compiled"
    SPACED = "spaced"


@dataclass(frozen=True)
class ParsedRedeem:
    """Threshold and owner strings extracted from redeem text."""

    signatures_required: int
    owners: List[str] = field(default_factory=list)
    form: RedeemForm = RedeemForm.SPACED


def detect_form(text: str) -> RedeemForm:
    if "[" in text and "]" in text:
        return RedeemForm.STRUCTURED
    if is_hex(text):
        return RedeemForm.COMPILED
    return RedeemForm.SPACED


def parse_redeem_text(text: str) -> StageResult[ParsedRedeem]:
    """Detect the grammar of ``text`` and extract threshold and owners."""

    text = text.strip()
    form = detect_form(text)
    if form is RedeemForm.STRUCTURED:
        return parse_structured(text)
    if form is RedeemForm.COMPILED:
        return parse_compiled(text)
    return parse_spaced(text)


def parse_structured(text: str) -> StageResult[ParsedRedeem]:
    match = _STRUCTURED_THRESHOLD_RE.search(text)
    if match is None:
        return StageResult.failure(ScriptParseError("failed to read required signatures"))
    signatures_required = int(match.group(1))

    open_index = text.find("[")
    close_index = text.find("]", open_index)
    if close_index == -1:
        return StageResult.failure(ScriptParseError("unterminated owner list"))
    owners = _QUOTED_KEY_RE.findall(text[open_index : close_index + 1])
    return StageResult.success(
        ParsedRedeem(signatures_required, owners, form=RedeemForm.STRUCTURED)
    )


def parse_compiled(text: str) -> StageResult[ParsedRedeem]:
    try:
        ops = deserialize_script(bytes.fromhex(text))
    except ScriptParseError as exc:
        return StageResult.failure(exc)
    except ValueError as exc:
        return StageResult.failure(ScriptParseError(f"redeem script is not valid hex: {exc}"))

    if ops and not ops[-1].is_push and ops[-1].opcode == OP_CHECKMULTISIG:
        ops = ops[:-1]
    result = parse_spaced(script_to_asm(ops))
    if not result.is_ok:
        return result
    return StageResult.success(
        ParsedRedeem(result.value.signatures_required, result.value.owners, form=RedeemForm.COMPILED)
    )


def parse_spaced(text: str) -> StageResult[ParsedRedeem]:
    tokens = text.split()
    if not tokens or not (tokens[0].isascii() and tokens[0].isdigit()):
        return StageResult.failure(ScriptParseError("failed to read required signatures"))
    signatures_required = int(tokens[0])
    owners = tokens[1:]

    if owners and owners[-1] in CHECKMULTISIG_TOKENS:
        owners.pop()
    # A trailing non-hex token is the redundant owner count; the real count
    # is taken from the owner list.
    if owners and not is_hex(owners[-1]):
        owners.pop()
    return StageResult.success(ParsedRedeem(signatures_required, owners, form=RedeemForm.SPACED))
