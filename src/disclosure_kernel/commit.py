"""
Content commitment: per-field salted digests and the aggregate root hash.

Each leaf field of the content is hashed with its own fresh nonce. The
digests are sorted lexicographically, which removes any positional
information. The root hash is the hash of their concatenation, followed by
the header digest (schema id, creator, holder) and the root hashes of the
legitimations in attachment order:

    root_hash = hash(d_1 + ... + d_n + header + l_1 + ... + l_k)
                with d_1 < d_2 < ... < d_n

The header and legitimations carry no secrets, so they are hashed without
nonces and stay bound even when every field is hidden.

Given the same content and the same nonces a commitment is fully
reproducible. Nonces are drawn from uuid4 (os.urandom), so a fresh
commitment changes the root hash on every call.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from .config import KernelOptions
from .content import Content, check_content
from .errors import NonceMapMalformedError
from .hashing import Hasher, digest_field, field_statement, get_hasher, hash_object, hash_str

logger = logging.getLogger(__name__)

NonceGenerator = Callable[[], str]


def generate_nonce() -> str:
    """Fresh random nonce (UUID v4)."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Commitment:
    """Output of commit()."""
    content_hashes: list[str]
    content_nonce_map: dict[str, str]
    root_hash: str
    # path -> nonce; lets a producer re-commit identical content reproducibly
    field_nonces: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_hashes": list(self.content_hashes),
            "content_nonce_map": dict(self.content_nonce_map),
            "root_hash": self.root_hash,
        }


def flatten_contents(contents: Mapping[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """
    Flatten nested mappings into (dotted path, value) leaves.

    Lists and empty mappings are leaves.

    >>> flatten_contents({"name": "Alice", "address": {"city": "Oslo"}})
    [('name', 'Alice'), ('address.city', 'Oslo')]
    """
    leaves: list[tuple[str, Any]] = []
    for key, value in contents.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            leaves.extend(flatten_contents(value, prefix=f"{path}."))
        else:
            leaves.append((path, value))
    return leaves


def header_digest(content: Content, hasher: Hasher | None = None) -> str:
    """Digest of the content header: schema id, creator and holder."""
    return hash_object(
        {"schema_id": content.schema_id, "creator": content.creator, "holder": content.holder},
        hasher,
    )


def compute_root_hash(
    content_hashes: Iterable[str],
    hasher: Hasher | None = None,
    *,
    header: str | None = None,
    legitimation_hashes: Iterable[str] = (),
) -> str:
    """
    Compute the root hash over a set of field digests.

    The digests are sorted before concatenation, so the result does not
    depend on the order they are supplied in. The header digest and the
    legitimation root hashes, when given, follow in that order.
    """
    leaves = sorted(content_hashes)
    if header is not None:
        leaves.append(header)
    leaves.extend(legitimation_hashes)
    return hash_str("".join(leaves), hasher)


def commit(
    content: Content,
    nonces: Mapping[str, str] | None = None,
    nonce_generator: NonceGenerator | None = None,
    options: KernelOptions | None = None,
    legitimation_hashes: Iterable[str] = (),
) -> Commitment:
    """
    Commit to every leaf field of a Content object.

    Args:
        content: Content to commit to
        nonces: Optional field path -> nonce assignment (reproducible commit).
            Paths without an entry draw a fresh nonce.
        nonce_generator: Source of fresh nonces (default: uuid4)
        options: Kernel options (hash algorithm)
        legitimation_hashes: Root hashes of the legitimations the envelope
            will carry, in attachment order

    Returns:
        Commitment with sorted content_hashes, a fully populated nonce map
        and the root hash over fields, header and legitimations

    Raises:
        ContentMalformedError: If the content is not well-formed
        MalformedValueError: If a value cannot be canonically serialized
        NonceMapMalformedError: If supplied nonces are empty, reused, or
            name fields that do not exist
    """
    check_content(content)
    hasher = get_hasher(options)
    generate = nonce_generator or generate_nonce
    supplied = dict(nonces or {})

    leaves = flatten_contents(content.contents)
    unknown = set(supplied) - {path for path, _ in leaves}
    if unknown:
        raise NonceMapMalformedError(
            f"Nonces supplied for unknown fields: {', '.join(sorted(unknown))}",
            {"fields": sorted(unknown)},
        )

    nonce_map: dict[str, str] = {}
    field_nonces: dict[str, str] = {}
    seen_nonces: set[str] = set()

    for path, value in leaves:
        nonce = supplied[path] if path in supplied else generate()
        if not isinstance(nonce, str) or not nonce:
            raise NonceMapMalformedError(
                f"Nonce for field {path!r} must be a non-empty string",
                {"field": path},
            )
        if nonce in seen_nonces:
            raise NonceMapMalformedError(
                f"Nonce reused within one commitment (field {path!r})",
                {"field": path},
            )
        seen_nonces.add(nonce)

        digest = digest_field(path, value, nonce, hasher)
        nonce_map[digest] = nonce
        field_nonces[path] = nonce

    content_hashes = sorted(nonce_map)
    root_hash = compute_root_hash(
        content_hashes,
        hasher,
        header=header_digest(content, hasher),
        legitimation_hashes=legitimation_hashes,
    )

    logger.debug("Committed %d fields for schema %s", len(content_hashes), content.schema_id)

    return Commitment(
        content_hashes=content_hashes,
        content_nonce_map=nonce_map,
        root_hash=root_hash,
        field_nonces=field_nonces,
    )


@dataclass
class FieldBinding:
    """How the revealed fields of a content object bind to a nonce map."""
    matched: dict[str, str] = field(default_factory=dict)  # path -> digest
    unbound_paths: list[str] = field(default_factory=list)
    unused_digests: list[str] = field(default_factory=list)


def bind_fields(
    contents: Mapping[str, Any],
    nonce_map: Mapping[str, str],
    hasher: Hasher | None = None,
) -> FieldBinding:
    """
    Re-hash every revealed field against the nonce map.

    The nonce map is keyed by digest, so the field a nonce belongs to is
    found by re-hashing: a (digest, nonce) pair belongs to the field whose
    digest_field(path, value, nonce) reproduces the digest.

    Returns the path -> digest matches, the revealed paths with no matching
    entry, and the nonce-map digests no revealed field reproduces.

    Cost is quadratic: each revealed field is tried against every remaining
    nonce, one hash per attempt. Verifiers of untrusted input can bound it
    with KernelOptions.max_fields.
    """
    binding = FieldBinding()
    remaining = dict(nonce_map)

    for path, value in flatten_contents(contents):
        statement = field_statement(path, value)
        for digest, nonce in remaining.items():
            if hash_str(statement + nonce, hasher) == digest:
                binding.matched[path] = digest
                del remaining[digest]
                break
        else:
            binding.unbound_paths.append(path)

    binding.unused_digests = sorted(remaining)
    return binding
