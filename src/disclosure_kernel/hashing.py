"""
Hash primitive, field hashing and identifier derivation.

Hashes are rendered as "0x<64 lowercase hex>". The default primitive is
BLAKE2b with a 256-bit digest; SHA-256 is available through KernelOptions.
"""

import hashlib
import re
from typing import Any, Callable

from .canonical import canonical_json
from .config import DEFAULT_OPTIONS, KernelOptions

Hasher = Callable[[bytes], str]

_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


def _blake2b_256(data: bytes) -> str:
    return "0x" + hashlib.blake2b(data, digest_size=32).hexdigest()


def _sha256(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


_HASHERS: dict[str, Hasher] = {
    "blake2b-256": _blake2b_256,
    "sha256": _sha256,
}


def get_hasher(options: KernelOptions | None = None) -> Hasher:
    """Return the hash primitive selected by the options."""
    opts = options or DEFAULT_OPTIONS
    return _HASHERS[opts.hash_algorithm]


def hash_bytes(data: bytes, hasher: Hasher | None = None) -> str:
    return (hasher or _blake2b_256)(data)


def hash_str(text: str, hasher: Hasher | None = None) -> str:
    return hash_bytes(text.encode("utf-8"), hasher)


def hash_object(value: Any, hasher: Hasher | None = None) -> str:
    """Hash the canonical JSON of a value."""
    return hash_str(canonical_json(value), hasher)


def is_hash(value: Any) -> bool:
    """True if value is a rendered 256-bit hash ("0x" + 64 hex chars)."""
    return isinstance(value, str) and bool(_HASH_RE.match(value))


def field_statement(name: str, value: Any) -> str:
    """
    Canonical statement for one field: {"<name>":<value>}.

    The object form keeps name and value self-delimiting, so two different
    (name, value) pairs never produce the same statement.
    """
    if not isinstance(name, str) or not name:
        raise ValueError("Field name must be a non-empty string")
    return canonical_json({name: value})


def digest_field(name: str, value: Any, nonce: str, hasher: Hasher | None = None) -> str:
    """
    Compute the salted digest of a single content field.

    digest = hash(canonical_json({name: value}) + nonce)

    Args:
        name: Field name (dotted path for nested fields)
        value: JSON-serializable field value
        nonce: Per-field random salt
        hasher: Hash primitive (default: BLAKE2b-256)

    Returns:
        "0x<hex>" formatted digest

    Raises:
        MalformedValueError: If the value cannot be canonically serialized
    """
    return hash_str(field_statement(name, value) + nonce, hasher)


def identifier_for(prefix: str, hash_value: str, hasher: Hasher | None = None) -> str:
    """
    Derive a URI-like identifier "<prefix>:<hash(hash_value)>".
    """
    return f"{prefix}:{hash_str(hash_value, hasher)}"


def content_id_for(root_hash: str, options: KernelOptions | None = None) -> str:
    """Content-addressed identifier for an envelope root hash."""
    opts = options or DEFAULT_OPTIONS
    return identifier_for(opts.content_id_prefix, root_hash, get_hasher(opts))
