"""
Identity resolution — turns user-supplied key strings into canonical keys.

Accepted encodings: 64-character hex, ``nsec1...`` (private) and
``npub1...`` (public) bech32.
"""

from __future__ import annotations

import re
from typing import Optional

import bech32
from cryptography.hazmat.primitives.asymmetric import ec

from nostr_dm.errors import KeyResolutionError

NSEC_PREFIX = "nsec"
NPUB_PREFIX = "npub"

# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


class PublicKey:
    """x-only secp256k1 public key, canonical lowercase hex."""

    __slots__ = ("hex",)

    def __init__(self, value: str):
        if not _HEX_KEY.match(value):
            raise ValueError(f"public key must be 64 hex characters, got {len(value)}")
        self.hex = value.lower()

    @classmethod
    def from_bytes(cls, raw: bytes) -> PublicKey:
        return cls(raw.hex())

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self.hex)

    def bech32(self) -> str:
        return encode_bech32(NPUB_PREFIX, self.to_bytes())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PublicKey) and other.hex == self.hex

    def __hash__(self) -> int:
        return hash(self.hex)

    def __repr__(self) -> str:
        return f"PublicKey({self.hex!r})"


class PrivateKey:
    """secp256k1 secret scalar in [1, n-1]."""

    __slots__ = ("hex", "_public")

    def __init__(self, value: str):
        if not _HEX_KEY.match(value):
            raise ValueError("private key must be 64 hex characters")
        scalar = int(value, 16)
        if not 0 < scalar < CURVE_ORDER:
            raise ValueError("private key is outside the secp256k1 range")
        self.hex = value.lower()
        self._public: Optional[PublicKey] = None

    @classmethod
    def from_bytes(cls, raw: bytes) -> PrivateKey:
        if len(raw) != 32:
            raise ValueError(f"private key must be 32 bytes, got {len(raw)}")
        return cls(raw.hex())

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self.hex)

    def to_ec(self) -> ec.EllipticCurvePrivateKey:
        return ec.derive_private_key(int(self.hex, 16), ec.SECP256K1())

    def public_key(self) -> PublicKey:
        if self._public is None:
            x = self.to_ec().public_key().public_numbers().x
            self._public = PublicKey.from_bytes(x.to_bytes(32, "big"))
        return self._public

    def bech32(self) -> str:
        return encode_bech32(NSEC_PREFIX, self.to_bytes())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PrivateKey) and other.hex == self.hex

    def __hash__(self) -> int:
        return hash(self.hex)

    def __repr__(self) -> str:
        return f"PrivateKey(public={self.public_key().hex!r})"


def encode_bech32(hrp: str, raw: bytes) -> str:
    data = bech32.convertbits(list(raw), 8, 5)
    return bech32.bech32_encode(hrp, data)


def decode_bech32(text: str) -> tuple[str, bytes]:
    """Decode a bech32 key string into (prefix, 32-byte payload)."""
    hrp, data = bech32.bech32_decode(text)
    if hrp is None or data is None:
        raise KeyResolutionError(text, "invalid bech32 encoding")
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None or len(raw) != 32:
        raise KeyResolutionError(text, "bech32 payload is not a 32-byte key")
    return hrp, bytes(raw)


def encode_npub(key: PublicKey) -> str:
    return key.bech32()


def encode_nsec(key: PrivateKey) -> str:
    return key.bech32()


def derive_public(key: PrivateKey) -> PublicKey:
    return key.public_key()


def is_hex_key(text: str) -> bool:
    return bool(_HEX_KEY.match(text))


def resolve_private(text: str) -> PrivateKey:
    """Resolve hex or nsec input to a private key."""
    value = text.strip()
    if is_hex_key(value):
        try:
            return PrivateKey(value)
        except ValueError as e:
            raise KeyResolutionError(text, f"invalid private key ({e})")
    if value.lower().startswith(NSEC_PREFIX + "1"):
        _, raw = _decode_expecting(value, NSEC_PREFIX)
        try:
            return PrivateKey.from_bytes(raw)
        except ValueError as e:
            raise KeyResolutionError(text, f"invalid private key ({e})")
    if value.lower().startswith(NPUB_PREFIX + "1"):
        raise KeyResolutionError(text, "expected a private key, got a public key")
    raise KeyResolutionError(text)


def resolve_public(text: str, derive_from_hex: bool = True) -> PublicKey:
    """Resolve hex, nsec or npub input to a public key.

    A hex value that is also a valid private key is treated as one and its
    public key is returned, so passing your own secret as recipient sends
    to yourself. This is a convenience shortcut: pass
    ``derive_from_hex=False`` to take hex literally.
    """
    value = text.strip()
    if is_hex_key(value):
        if derive_from_hex:
            try:
                return PrivateKey(value).public_key()
            except ValueError:
                pass
        return PublicKey(value)
    if value.lower().startswith(NSEC_PREFIX + "1"):
        _, raw = _decode_expecting(value, NSEC_PREFIX)
        try:
            return PrivateKey.from_bytes(raw).public_key()
        except ValueError as e:
            raise KeyResolutionError(text, f"invalid private key ({e})")
    if value.lower().startswith(NPUB_PREFIX + "1"):
        _, raw = _decode_expecting(value, NPUB_PREFIX)
        return PublicKey.from_bytes(raw)
    raise KeyResolutionError(text)


def _decode_expecting(value: str, prefix: str) -> tuple[str, bytes]:
    hrp, raw = decode_bech32(value)
    if hrp != prefix:
        raise KeyResolutionError(value, f"expected {prefix} key, got {hrp}")
    return hrp, raw
