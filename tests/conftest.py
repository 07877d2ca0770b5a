from __future__ import annotations

import pytest

# Compressed encodings of G, 2G, 3G and 4G on secp256k1.
K1 = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
K2 = "02c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"
K3 = "02f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"
K4 = "03e493dbf1c10d80f3581e4904930b1404cc6c13900ee0758474fa94abe8c4cd13"

G_UNCOMPRESSED = (
    "04"
    "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)

# Right length, not a curve point (x is above the field prime).
OFF_CURVE = "02" + "ff" * 32


def fake_key(index: int) -> str:
    """33-byte key-shaped hex, distinct per index."""

    return "02" + f"{index:02x}" * 32


def accept_33_bytes(data: bytes) -> bool:
    return len(data) == 33


@pytest.fixture
def owner_keys() -> list[str]:
    return [K1, K2, K3]
