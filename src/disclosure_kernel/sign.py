"""
Signing capability for envelope creators and presentation holders.

The kernel never holds private keys itself: callers pass a Signer into the
operations that sign. The default Ed25519Signer wraps a cryptography
Ed25519 private key and derives its address from the raw public key:

    address = "0x" + hex(raw 32-byte Ed25519 public key)

so any verifier can check a signature from the address alone. Signatures
are base64-encoded raw Ed25519 signatures.
"""

import base64
import binascii
import re
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{64}$")


@runtime_checkable
class Signer(Protocol):
    """A key holder that can sign on behalf of an address."""

    @property
    def address(self) -> str:
        ...

    def sign(self, message: bytes) -> str:
        ...


class Ed25519Signer:
    """
    Signer backed by an Ed25519 private key.
    """

    def __init__(self, private_key: ed25519.Ed25519PrivateKey):
        self._private_key = private_key
        public_bytes = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._address = address_from_public_bytes(public_bytes)

    @classmethod
    def generate(cls) -> "Ed25519Signer":
        return cls(ed25519.Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, data: bytes) -> "Ed25519Signer":
        if len(data) != 32:
            raise ValueError(f"Ed25519 private key must be 32 bytes, got {len(data)}")
        return cls(ed25519.Ed25519PrivateKey.from_private_bytes(data))

    @property
    def address(self) -> str:
        return self._address

    def sign(self, message: bytes) -> str:
        signature = self._private_key.sign(message)
        return base64.b64encode(signature).decode("ascii")

    def __repr__(self) -> str:
        return f"Ed25519Signer(address={self._address!r})"


def address_from_public_bytes(public_bytes: bytes) -> str:
    if len(public_bytes) != 32:
        raise ValueError(f"Ed25519 public key must be 32 bytes, got {len(public_bytes)}")
    return "0x" + public_bytes.hex()


def is_address(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def public_key_from_address(address: str) -> ed25519.Ed25519PublicKey:
    """
    Recover the Ed25519 public key encoded in an address.

    Raises:
        ValueError: If the address is not "0x" + 64 hex chars
    """
    if not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return ed25519.Ed25519PublicKey.from_public_bytes(bytes.fromhex(address[2:]))


def verify_signature(address: str, message: bytes, signature: str) -> bool:
    """
    Verify a base64 Ed25519 signature over message for the given address.

    Returns False for any malformed address, malformed signature or
    verification failure.
    """
    try:
        public_key = public_key_from_address(address)
    except ValueError:
        return False

    if not isinstance(signature, str) or not signature:
        return False
    try:
        signature_bytes = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        return False
    if len(signature_bytes) != 64:
        return False

    try:
        public_key.verify(signature_bytes, message)
    except InvalidSignature:
        return False
    return True
