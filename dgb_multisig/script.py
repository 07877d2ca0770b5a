"""Script serialization helpers for bare multisignature redeem scripts.

Only the subset of the script language needed to build and read back
``OP_m <pubkey>... OP_n OP_CHECKMULTISIG`` is implemented here. Nothing in this
module executes scripts; deserialization walks opcodes and pushes so the
compiled form can be rendered as text again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .errors import ScriptParseError

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_16 = 0x60
OP_RETURN = 0x6A
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC
OP_CHECKSIGVERIFY = 0xAD
OP_CHECKMULTISIG = 0xAE
OP_CHECKMULTISIGVERIFY = 0xAF

MAX_SCRIPT_ELEMENT_SIZE = 520
MAX_MULTISIG_OWNERS = 15

OPCODE_NAMES = {
    OP_PUSHDATA1: "OP_PUSHDATA1",
    OP_PUSHDATA2: "OP_PUSHDATA2",
    OP_PUSHDATA4: "OP_PUSHDATA4",
    OP_RETURN: "OP_RETURN",
    OP_DUP: "OP_DUP",
    OP_EQUAL: "OP_EQUAL",
    OP_EQUALVERIFY: "OP_EQUALVERIFY",
    OP_HASH160: "OP_HASH160",
    OP_CHECKSIG: "OP_CHECKSIG",
    OP_CHECKSIGVERIFY: "OP_CHECKSIGVERIFY",
    OP_CHECKMULTISIG: "OP_CHECKMULTISIG",
    OP_CHECKMULTISIGVERIFY: "OP_CHECKMULTISIGVERIFY",
}


@dataclass(frozen=True)
class ScriptOp:
    """A single deserialized script element."""

    opcode: int
    data: bytes | None = None

    @property
    def is_push(self) -> bool:
        return self.data is not None


def encode_small_int(value: int) -> int:
    """Return the minimal opcode pushing ``value`` (0..16)."""

    if value == 0:
        return OP_0
    if 1 <= value <= 16:
        return OP_1 + value - 1
    raise ValueError(f"small integer out of range: {value}")


def decode_small_int(opcode: int) -> int | None:
    """Inverse of :func:`encode_small_int`; ``None`` for other opcodes."""

    if opcode == OP_0:
        return 0
    if OP_1 <= opcode <= OP_16:
        return opcode - OP_1 + 1
    return None


def push_data(data: bytes) -> bytes:
    """Encode ``data`` with the smallest push opcode that fits."""

    length = len(data)
    if length > MAX_SCRIPT_ELEMENT_SIZE:
        raise ValueError("push data exceeds 520 bytes")
    if length < OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    return bytes([OP_PUSHDATA2]) + length.to_bytes(2, "little") + data


def build_multisig_script(signatures_required: int, owner_keys: Sequence[bytes]) -> bytes:
    """Assemble ``OP_m <key>... OP_n OP_CHECKMULTISIG``.

    Inputs are expected to be validated already; key order is kept exactly as
    given because it determines the script hash and therefore the address.
    """

    script = bytearray([encode_small_int(signatures_required)])
    for key in owner_keys:
        script += push_data(bytes(key))
    script.append(encode_small_int(len(owner_keys)))
    script.append(OP_CHECKMULTISIG)
    return bytes(script)


def deserialize_script(script: bytes) -> List[ScriptOp]:
    """Split a serialized script into opcodes and data pushes."""

    ops: List[ScriptOp] = []
    index = 0
    end = len(script)
    while index < end:
        opcode = script[index]
        index += 1
        if opcode < OP_PUSHDATA1:
            size = opcode
        elif opcode == OP_PUSHDATA1:
            size = _read_length(script, index, 1)
            index += 1
        elif opcode == OP_PUSHDATA2:
            size = _read_length(script, index, 2)
            index += 2
        elif opcode == OP_PUSHDATA4:
            size = _read_length(script, index, 4)
            index += 4
        else:
            ops.append(ScriptOp(opcode))
            continue

        if index + size > end:
            raise ScriptParseError(
                f"malformed script: push of {size} bytes at offset {index} runs past the end"
            )
        ops.append(ScriptOp(opcode, script[index : index + size]))
        index += size
    return ops


def _read_length(script: bytes, index: int, width: int) -> int:
    if index + width > len(script):
        raise ScriptParseError("malformed script: truncated push length")
    return int.from_bytes(script[index : index + width], "little")


def decode_script_number(data: bytes) -> int:
    """Decode a minimally-encoded little-endian script number."""

    if not data:
        return 0
    value = int.from_bytes(data, "little")
    if data[-1] & 0x80:
        return -(value & ~(0x80 << (8 * (len(data) - 1))))
    return value


def op_to_asm(op: ScriptOp) -> str:
    if op.data is not None:
        # Short pushes read as numbers, matching node-style asm output.
        if len(op.data) <= 4:
            return str(decode_script_number(op.data))
        return op.data.hex()
    small = decode_small_int(op.opcode)
    if small is not None:
        return str(small)
    if op.opcode == OP_1NEGATE:
        return "-1"
    return OPCODE_NAMES.get(op.opcode, "OP_UNKNOWN")


def script_to_asm(ops: Iterable[ScriptOp]) -> str:
    """Render deserialized ops as a space-separated token string."""

    return " ".join(op_to_asm(op) for op in ops)
