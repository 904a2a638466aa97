"""
Wallet identity for VelCoin.

A wallet is a secp256k1 key-pair plus its address:
  - Fresh generation (address derived from the public key)
  - Import from a private key (address supplied by the caller, kept verbatim)
  - Plain dict form used by the persisted wallet record
  - Encrypted backup export / import (AES-256-GCM, PBKDF2 key)
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Any

from Crypto.Cipher import AES

from velcoin_core.crypto_utils import (
    derive_address,
    generate_keypair,
    normalize_private_key,
    private_key_to_public,
)
from velcoin_core.errors import InvalidKey
from velcoin_core.logging_config import register_secret

logger = logging.getLogger("velcoin_wallet")

BACKUP_VERSION = 1
BACKUP_KDF_ITERATIONS = 600_000
MAX_KDF_ITERATIONS = 10 * BACKUP_KDF_ITERATIONS


class Wallet:
    """The single active identity: hex private key, hex public key, address."""

    __slots__ = ("private_key", "public_key", "address")

    def __init__(self, private_key: str, public_key: str, address: str):
        self.private_key = private_key
        self.public_key = public_key
        self.address = address
        register_secret(private_key)

    # ---- factory methods ----

    @classmethod
    def create(cls) -> Wallet:
        """Generate a brand-new wallet with a derived address."""
        priv, pub = generate_keypair()
        wallet = cls(priv, pub, derive_address(pub))
        logger.info(f"Generated wallet {wallet.address}")
        return wallet

    @classmethod
    def from_private_key(cls, private_key_hex: str, address: str) -> Wallet:
        """
        Import a wallet from its private key.

        The public key is recomputed, but *address* is taken on trust and
        stored verbatim, even when it differs from ``derive_address(pub)``.
        Wallets whose address came from another scheme remain importable.

        Raises InvalidKey if the key is not a valid secp256k1 scalar.
        """
        priv = normalize_private_key(private_key_hex)
        pub = private_key_to_public(priv)
        if address != derive_address(pub):
            logger.debug("Imported address does not match derived address")
        return cls(priv, pub, address)

    # ---- serialisation ----

    def to_dict(self) -> dict[str, str]:
        return {
            "private_key": self.private_key,
            "public_key": self.public_key,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Wallet:
        """
        Rebuild a wallet from its persisted record.

        Raises ValueError if the record is not an object with the three
        string fields.  Key consistency is not re-checked here; a corrupt
        key surfaces as SigningError at signing time.
        """
        if not isinstance(data, dict):
            raise ValueError("wallet record must be an object")
        fields = []
        for name in ("private_key", "public_key", "address"):
            value = data.get(name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"wallet record field {name!r} missing or not a string")
            fields.append(value)
        return cls(*fields)

    def export_encrypted(self, passphrase: str) -> dict:
        """
        Export the wallet as an encrypted JSON-compatible dict.

        AES-256-GCM over the private key, key from PBKDF2-HMAC-SHA256.
        Public key and address stay in the clear; the address is bound to
        the ciphertext as associated data, so editing it breaks the tag.
        """
        salt = os.urandom(16)
        key = _backup_key(passphrase, salt, BACKUP_KDF_ITERATIONS)
        ciphertext, nonce, tag = _seal_private_key(
            key, bytes.fromhex(self.private_key), self.address,
        )
        return {
            "version": BACKUP_VERSION,
            "address": self.address,
            "public_key": self.public_key,
            "encrypted_private_key": ciphertext.hex(),
            "nonce": nonce.hex(),
            "tag": tag.hex(),
            "salt": salt.hex(),
            "kdf": "pbkdf2-hmac-sha256",
            "kdf_iterations": BACKUP_KDF_ITERATIONS,
        }

    @classmethod
    def import_encrypted(cls, data: dict, passphrase: str) -> Wallet:
        """
        Restore a wallet from :meth:`export_encrypted` output.

        Raises InvalidKey on a wrong passphrase, a tampered document, an
        out-of-range iteration count, or a decrypted key that is not a
        valid scalar.
        """
        try:
            salt = bytes.fromhex(data["salt"])
            nonce = bytes.fromhex(data["nonce"])
            tag = bytes.fromhex(data["tag"])
            ciphertext = bytes.fromhex(data["encrypted_private_key"])
            iterations = data.get("kdf_iterations", BACKUP_KDF_ITERATIONS)
            address = data["address"]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise InvalidKey(f"Malformed backup: {exc}") from exc
        if not isinstance(address, str):
            raise InvalidKey("Malformed backup: address must be a string")
        if isinstance(iterations, bool) or not isinstance(iterations, int):
            raise InvalidKey("Malformed backup: kdf_iterations must be an integer")
        if not 1 <= iterations <= MAX_KDF_ITERATIONS:
            raise InvalidKey(f"Unsupported kdf_iterations: {iterations}")

        key = _backup_key(passphrase, salt, iterations)
        try:
            priv = _open_private_key(key, nonce, ciphertext, tag, address)
        except ValueError:
            raise InvalidKey("Wrong passphrase or corrupted backup") from None
        return cls.from_private_key(priv.hex(), address)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Wallet):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        # never include the private key
        return f"Wallet({self.address})"


# ---- backup encryption ----

def _backup_key(passphrase: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", passphrase.encode("utf-8"), salt, iterations)


def _seal_private_key(key: bytes, private_key: bytes,
                      address: str) -> tuple[bytes, bytes, bytes]:
    """AES-256-GCM over *private_key* with *address* as associated data."""
    nonce = os.urandom(12)
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(address.encode("utf-8"))
    ciphertext, tag = cipher.encrypt_and_digest(private_key)
    return ciphertext, nonce, tag


def _open_private_key(key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes,
                      address: str) -> bytes:
    """Raises ValueError if the tag does not match ciphertext and address."""
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(address.encode("utf-8"))
    return cipher.decrypt_and_verify(ciphertext, tag)
