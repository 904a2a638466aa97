"""
secp256k1 and hashing primitives for VelCoin.

All keys cross module boundaries as lowercase hex strings:
  - private key: 64 hex chars (32-byte big-endian scalar)
  - public key:  130 hex chars, uncompressed SEC1 point (``04 || X || Y``)

Addresses are a truncated digest of the public key's *hex text*, not of
its raw bytes; the node derives them the same way.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from ecdsa import SECP256k1, BadSignatureError, SigningKey, VerifyingKey
from ecdsa.der import UnexpectedDER
from ecdsa.keys import BadDigestError, MalformedPointError
from ecdsa.util import sigdecode_der, sigencode_der

from velcoin_core.errors import InvalidKey, SigningError

CURVE = SECP256k1
CURVE_ORDER: int = SECP256k1.order
PRIVATE_KEY_HEX_LEN = 64

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


# ===================================================================
#  Hashing
# ===================================================================

def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256_hex(text: str) -> str:
    """SHA-256 of the UTF-8 encoding of *text*, as lowercase hex."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


# ===================================================================
#  Address derivation
# ===================================================================

@dataclass(frozen=True)
class AddressScheme:
    """
    A versioned address format: which digest to apply to the public-key
    hex and how many leading hex characters to keep.

    The truncation is part of the wire contract with the node; a new
    format must be a new version, never an edit of an existing one.
    """
    version: int
    hash_name: str
    length: int

    def derive(self, public_key_hex: str) -> str:
        digest = hashlib.new(self.hash_name, public_key_hex.encode("utf-8")).hexdigest()
        return digest[: self.length]


ADDRESS_SCHEME_V1 = AddressScheme(version=1, hash_name="sha256", length=40)


def derive_address(public_key_hex: str, scheme: AddressScheme = ADDRESS_SCHEME_V1) -> str:
    """Deterministic, one-way mapping from a public key to its address."""
    return scheme.derive(public_key_hex)


# ===================================================================
#  Key handling
# ===================================================================

def normalize_private_key(private_key_hex: str) -> str:
    """
    Parse *private_key_hex* as a secp256k1 scalar and return it as 64
    zero-padded lowercase hex chars.

    Raises InvalidKey for non-hex input, zero, or a value >= curve order.
    """
    if not isinstance(private_key_hex, str):
        raise InvalidKey("Private key must be a hex string")
    text = private_key_hex.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text or len(text) > PRIVATE_KEY_HEX_LEN:
        raise InvalidKey("Private key must be 1-64 hex characters")
    # int(x, 16) alone would accept signs and "_" separators.
    if any(c not in _HEX_DIGITS for c in text):
        raise InvalidKey("Private key is not valid hex")
    scalar = int(text, 16)
    if not 0 < scalar < CURVE_ORDER:
        raise InvalidKey("Private key is out of range for secp256k1")
    return format(scalar, "064x")


def _signing_key(private_key_hex: str) -> SigningKey:
    return SigningKey.from_string(
        bytes.fromhex(normalize_private_key(private_key_hex)), curve=CURVE,
    )


def _public_hex(sk: SigningKey) -> str:
    return (b"\x04" + sk.get_verifying_key().to_string()).hex()


def generate_keypair() -> tuple[str, str]:
    """Generate a fresh secp256k1 key pair.  Returns (private_hex, public_hex)."""
    sk = SigningKey.generate(curve=CURVE)
    return sk.to_string().hex(), _public_hex(sk)


def private_key_to_public(private_key_hex: str) -> str:
    """Compute the uncompressed public key ``k*G`` for a private scalar."""
    return _public_hex(_signing_key(private_key_hex))


# ===================================================================
#  Signing
# ===================================================================

def sign_digest(private_key_hex: str, digest: bytes) -> str:
    """
    Sign a 32-byte digest with RFC 6979 deterministic ECDSA.
    Returns the DER-encoded signature as hex.
    """
    try:
        sk = _signing_key(private_key_hex)
    except InvalidKey as exc:
        raise SigningError(f"Cannot sign: {exc.message}") from exc
    sig = sk.sign_digest_deterministic(
        digest, hashfunc=hashlib.sha256, sigencode=sigencode_der,
    )
    return sig.hex()


def verify_digest(public_key_hex: str, digest: bytes, signature_hex: str) -> bool:
    """Verify a DER signature over *digest*.  Never raises on bad input."""
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(public_key_hex), curve=CURVE)
        return vk.verify_digest(
            bytes.fromhex(signature_hex), digest, sigdecode=sigdecode_der,
        )
    except (BadSignatureError, BadDigestError, MalformedPointError,
            UnexpectedDER, ValueError):
        return False
