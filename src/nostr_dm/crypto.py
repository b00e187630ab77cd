"""
Conversation crypto — NIP-44 v2 payload encryption between two identities.

Key schedule:
- conversation key = HKDF-extract(salt="nip44-v2", ECDH shared x)
- per-message keys = HKDF-expand(conversation key, info=nonce, 76 bytes)
  -> ChaCha20 key (32) | ChaCha20 nonce (12) | HMAC key (32)

Payload: base64(version 0x02 | nonce (32) | ciphertext | mac (32)).
"""

import base64
import binascii
import hashlib
import hmac
import os
import struct
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from nostr_dm.errors import DecryptionError, EncryptionError
from nostr_dm.keys import PrivateKey, PublicKey

VERSION = 2
SALT = b"nip44-v2"
NONCE_SIZE = 32
MAC_SIZE = 32
MAX_PLAINTEXT_SIZE = 65535
MIN_PADDED_SIZE = 32

# Base64 length bounds of a well-formed payload.
MIN_PAYLOAD_SIZE = 132
MAX_PAYLOAD_SIZE = 87472


def conversation_key(my_private: PrivateKey, their_public: PublicKey) -> bytes:
    """Derive the symmetric key shared by the two parties.

    Raises ValueError if the counterparty key is not a point on the curve.
    """
    peer = ec.EllipticCurvePublicKey.from_encoded_point(
        ec.SECP256K1(), b"\x02" + their_public.to_bytes(),
    )
    shared_x = my_private.to_ec().exchange(ec.ECDH(), peer)
    return hmac.new(SALT, shared_x, hashlib.sha256).digest()


def calc_padded_len(unpadded_len: int) -> int:
    if unpadded_len <= MIN_PADDED_SIZE:
        return MIN_PADDED_SIZE
    next_power = 1 << (unpadded_len - 1).bit_length()
    chunk = 32 if next_power <= 256 else next_power // 8
    return chunk * ((unpadded_len - 1) // chunk + 1)


def _message_keys(conv_key: bytes, nonce: bytes) -> tuple[bytes, bytes, bytes]:
    keys = HKDFExpand(algorithm=hashes.SHA256(), length=76, info=nonce).derive(conv_key)
    return keys[:32], keys[32:44], keys[44:]


def _chacha20(key: bytes, nonce: bytes, data: bytes) -> bytes:
    # 16-byte nonce for cryptography's ChaCha20: 4-byte LE counter (0) + 12-byte nonce.
    cipher = Cipher(algorithms.ChaCha20(key, b"\x00" * 4 + nonce), mode=None)
    return cipher.encryptor().update(data)


def _mac(hmac_key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    return hmac.new(hmac_key, nonce + ciphertext, hashlib.sha256).digest()


def _pad(plaintext: bytes) -> bytes:
    size = len(plaintext)
    return struct.pack(">H", size) + plaintext + b"\x00" * (calc_padded_len(size) - size)


def _unpad(padded: bytes) -> bytes:
    (size,) = struct.unpack(">H", padded[:2])
    plaintext = padded[2:2 + size]
    if len(plaintext) != size or len(padded) != 2 + calc_padded_len(size):
        raise ValueError("invalid padding")
    return plaintext


def encrypt(
    plaintext: str,
    my_private: PrivateKey,
    their_public: PublicKey,
    nonce: Optional[bytes] = None,
) -> str:
    """Encrypt ``plaintext`` for ``their_public``. Empty strings are allowed."""
    try:
        conv_key = conversation_key(my_private, their_public)
    except ValueError as e:
        raise EncryptionError(f"cannot derive conversation key for {their_public.hex}: {e}")

    raw = plaintext.encode("utf-8")
    if len(raw) > MAX_PLAINTEXT_SIZE:
        raise EncryptionError(f"plaintext is {len(raw)} bytes, limit is {MAX_PLAINTEXT_SIZE}")

    nonce = nonce if nonce is not None else os.urandom(NONCE_SIZE)
    if len(nonce) != NONCE_SIZE:
        raise EncryptionError(f"nonce must be {NONCE_SIZE} bytes")

    chacha_key, chacha_nonce, hmac_key = _message_keys(conv_key, nonce)
    ciphertext = _chacha20(chacha_key, chacha_nonce, _pad(raw))
    mac = _mac(hmac_key, nonce, ciphertext)
    return base64.b64encode(bytes([VERSION]) + nonce + ciphertext + mac).decode("ascii")


def decrypt(payload: str, my_private: PrivateKey, their_public: PublicKey) -> str:
    """Decrypt a payload from ``their_public``.

    Raises DecryptionError with reason MALFORMED when there is nothing usable
    to decrypt and AUTHENTICATION when decryption was attempted and failed.
    """
    if not payload:
        raise DecryptionError("empty ciphertext", DecryptionError.MALFORMED)
    if payload[0] == "#":
        raise DecryptionError("unsupported encryption version", DecryptionError.MALFORMED)
    if not MIN_PAYLOAD_SIZE <= len(payload) <= MAX_PAYLOAD_SIZE:
        raise DecryptionError(f"invalid payload length {len(payload)}", DecryptionError.MALFORMED)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise DecryptionError("ciphertext is not valid base64", DecryptionError.MALFORMED)
    if data[0] != VERSION:
        raise DecryptionError(f"unsupported encryption version {data[0]}", DecryptionError.MALFORMED)

    nonce = data[1:1 + NONCE_SIZE]
    ciphertext = data[1 + NONCE_SIZE:-MAC_SIZE]
    mac = data[-MAC_SIZE:]

    try:
        conv_key = conversation_key(my_private, their_public)
    except ValueError as e:
        raise DecryptionError(f"cannot derive conversation key for {their_public.hex}: {e}",
                              DecryptionError.MALFORMED)

    chacha_key, chacha_nonce, hmac_key = _message_keys(conv_key, nonce)
    if not hmac.compare_digest(_mac(hmac_key, nonce, ciphertext), mac):
        raise DecryptionError("message authentication failed", DecryptionError.AUTHENTICATION)

    try:
        return _unpad(_chacha20(chacha_key, chacha_nonce, ciphertext)).decode("utf-8")
    except (ValueError, struct.error) as e:
        raise DecryptionError(f"decrypted payload is invalid: {e}", DecryptionError.AUTHENTICATION)
