# vanishchat/core/crypto.py

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from vanishchat.core.errors import CryptoError, DecryptionError, MalformedEnvelope

KEY_BITS = 256
NONCE_BYTES = 12
SEPARATOR = ":"

# ---------- KEYS ----------


def new_key() -> str:
    """
    Fresh random AES-256 key, base64 text so it can sit in a String column.
    Every message gets its own; nothing is derived from a master secret.
    """
    return _b64(AESGCM.generate_key(bit_length=KEY_BITS))


def _load_key(key: str) -> AESGCM:
    try:
        return AESGCM(base64.b64decode(key, validate=True))
    except (binascii.Error, ValueError, TypeError) as e:
        raise CryptoError(f"Unusable key: {e}") from e


# ---------- ENCRYPTION ----------


def encrypt(plaintext: str, key: str) -> str:
    """
    AES-GCM → "base64(nonce):base64(ciphertext + tag)"

    A new nonce is drawn on every call, so encrypting the same text twice
    gives two different envelopes.
    """
    aesgcm = _load_key(key)
    nonce = os.urandom(NONCE_BYTES)
    try:
        ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    except (UnicodeEncodeError, AttributeError, OverflowError) as e:
        raise CryptoError(f"Encryption failed: {e}") from e
    return _b64(nonce) + SEPARATOR + _b64(ciphertext)


def decrypt(envelope: str, key: str) -> str:
    """
    Reverse of :func:`encrypt`.

    Raises MalformedEnvelope if the nonce/ciphertext structure is missing,
    DecryptionError if the tag does not verify or the key is wrong.
    """
    nonce, ciphertext = split_envelope(envelope)
    try:
        aesgcm = _load_key(key)
    except CryptoError as e:
        raise DecryptionError(str(e)) from e
    try:
        plaintext = aesgcm.decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise DecryptionError("Authentication tag mismatch") from e
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError(f"Plaintext is not UTF-8: {e}") from e


def split_envelope(envelope: str) -> tuple[bytes, bytes]:
    if not isinstance(envelope, str) or envelope.count(SEPARATOR) != 1:
        raise MalformedEnvelope("Envelope must be 'iv:ciphertext'")
    nonce_b64, ciphertext_b64 = envelope.split(SEPARATOR)
    try:
        nonce = base64.b64decode(nonce_b64, validate=True)
        ciphertext = base64.b64decode(ciphertext_b64, validate=True)
    except binascii.Error as e:
        raise MalformedEnvelope(f"Envelope is not base64: {e}") from e
    if len(nonce) != NONCE_BYTES or not ciphertext:
        raise MalformedEnvelope("Envelope has a bad nonce or empty ciphertext")
    return nonce, ciphertext


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode()
