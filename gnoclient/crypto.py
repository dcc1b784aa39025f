"""Bech32 addresses for Gno accounts (``g1...``).

Only classic Bech32 (BIP-0173) is needed: account addresses are the 20-byte
RIPEMD-160 of the SHA-256 of the compressed secp256k1 public key, encoded
under the ``g`` human readable part.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from Crypto.Hash import RIPEMD160

ADDRESS_HRP = "g"
ADDRESS_LENGTH = 20

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)


class Bech32Error(ValueError):
    """Raised for malformed bech32 strings or payloads."""


def _polymod(values: Sequence[int]) -> int:
    chk = 1
    for v in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i in range(5):
            if (top >> i) & 1:
                chk ^= _GENERATORS[i]
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _convertbits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> List[int]:
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or (value >> from_bits):
            raise Bech32Error("invalid value for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise Bech32Error("invalid padding")
    return ret


def bech32_encode(hrp: str, payload: bytes) -> str:
    """Encode raw *payload* bytes under *hrp*."""

    data = _convertbits(payload, 8, 5, pad=True)
    values = _hrp_expand(hrp) + data
    polymod = _polymod(values + [0, 0, 0, 0, 0, 0]) ^ 1
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(CHARSET[d] for d in data + checksum)


def bech32_decode(bech: str) -> tuple[str, bytes]:
    """Decode *bech* into ``(hrp, payload)``."""

    if any(c.isupper() for c in bech) and any(c.islower() for c in bech):
        raise Bech32Error("mixed-case bech32 is invalid")
    bech = bech.lower()
    pos = bech.rfind("1")
    if pos < 1 or pos + 7 > len(bech):
        raise Bech32Error(f"invalid bech32 string: {bech!r}")
    hrp = bech[:pos]
    try:
        data = [_CHARSET_REV[c] for c in bech[pos + 1 :]]
    except KeyError as exc:
        raise Bech32Error(f"invalid character in bech32 string: {exc.args[0]!r}") from exc
    if _polymod(_hrp_expand(hrp) + data) != 1:
        raise Bech32Error("bech32 checksum mismatch")
    return hrp, bytes(_convertbits(data[:-6], 5, 8, pad=False))


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 over SHA-256, as used for account addresses."""

    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


@dataclass(frozen=True)
class Address:
    """A 20-byte account address. The default value is the zero address."""

    raw: bytes = bytes(ADDRESS_LENGTH)

    def __post_init__(self) -> None:
        if len(self.raw) != ADDRESS_LENGTH:
            raise Bech32Error(
                f"address must be {ADDRESS_LENGTH} bytes, got {len(self.raw)}"
            )

    @classmethod
    def from_bech32(cls, value: str) -> "Address":
        hrp, payload = bech32_decode(value)
        if hrp != ADDRESS_HRP:
            raise Bech32Error(f"unexpected address prefix {hrp!r}, expected {ADDRESS_HRP!r}")
        return cls(payload)

    @classmethod
    def from_pubkey(cls, compressed_pubkey: bytes) -> "Address":
        return cls(hash160(compressed_pubkey))

    def is_zero(self) -> bool:
        return not any(self.raw)

    def __str__(self) -> str:
        return bech32_encode(ADDRESS_HRP, self.raw)


ZERO_ADDRESS = Address()
