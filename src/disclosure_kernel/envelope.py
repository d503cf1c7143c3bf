"""
Proof envelopes: signed content commitments with nested legitimations.

An envelope is built once from a Content object and a signer, and never
mutated afterwards. Selective disclosure produces a new envelope with fewer
revealed fields and a smaller nonce map; the content hashes, root hash and
creator signature stay the same, so disclosure never needs re-signing.

The root hash commits to the content header (schema id, creator, holder)
and to the root hashes of the attached legitimations, so none of them can
be replaced on a signed envelope without failing verification.
"""

import dataclasses
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from .commit import bind_fields, commit, flatten_contents
from .config import KernelOptions
from .content import Content, check_content
from .errors import (
    ContentInvalidError,
    ContentMalformedError,
    CreatorMismatchError,
    NonceMapMalformedError,
    ProofError,
    SchemaMalformedError,
    SchemaMismatchError,
    UnknownFieldError,
)
from .hashing import content_id_for, get_hasher
from .schema import SchemaService, validate
from .sign import Signer
from .verify import check_shape, verify_chain, verify_integrity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofEnvelope:
    """
    A signed commitment to Content.

    Fields are not validated on construction so that partial envelopes
    (for example freshly decompressed ones) can be represented; use
    error_check() before trusting one. Lists are stored as tuples and the
    nonce map as a read-only mapping, so an envelope cannot be changed in
    place.
    """
    content: Content | None
    content_hashes: Sequence[str] | None
    content_nonce_map: Mapping[str, str] | None
    legitimations: Sequence["ProofEnvelope"] | None
    creator_signature: str | None
    root_hash: str | None
    content_id: str | None
    link: str | None = None

    def __post_init__(self):
        if isinstance(self.content_hashes, list):
            object.__setattr__(self, "content_hashes", tuple(self.content_hashes))
        if isinstance(self.content_nonce_map, dict):
            object.__setattr__(self, "content_nonce_map", MappingProxyType(dict(self.content_nonce_map)))
        if isinstance(self.legitimations, list):
            object.__setattr__(self, "legitimations", tuple(self.legitimations))

    @property
    def creator(self) -> str | None:
        return self.content.creator if self.content is not None else None

    @property
    def holder(self) -> str | None:
        return self.content.holder if self.content is not None else None

    def fields(self) -> set[str]:
        """Top-level names of the fields this envelope reveals."""
        return self.content.field_names() if self.content is not None else set()

    def is_fully_disclosed(self) -> bool:
        return len(self.content_nonce_map or {}) == len(self.content_hashes or [])


def is_proof_envelope(value: Any, options: KernelOptions | None = None) -> bool:
    """Type guard: True if value is an envelope that passes error_check."""
    if not isinstance(value, ProofEnvelope):
        return False
    try:
        error_check(value, options)
    except ProofError:
        return False
    return True


def error_check(envelope: Any, options: KernelOptions | None = None) -> None:
    """
    Check that an envelope is complete and internally consistent.

    Raises:
        ContentMissingError, ContentMalformedError, LegitimationsMissingError,
        NonceMapMissingError, NonceMapMalformedError, or any IntegrityError
        raised by verify_integrity
    """
    verify_integrity(envelope, options)


def build(
    content: Content,
    schema: Mapping[str, Any],
    signer: Signer,
    legitimations: Iterable[ProofEnvelope] = (),
    link: str | None = None,
    *,
    nonces: Mapping[str, str] | None = None,
    schema_service: SchemaService | None = None,
    options: KernelOptions | None = None,
) -> ProofEnvelope:
    """
    Validate, commit to and sign content.

    Args:
        content: Content to attest
        schema: Schema the content must match
        signer: Signing capability of the content creator
        legitimations: Envelopes supporting this one; each must verify
        link: Optional identifier of a related envelope
        nonces: Optional field path -> nonce assignment (reproducible build)
        schema_service: Leaf type checker for the structural validator
        options: Kernel options

    Returns:
        A new ProofEnvelope with a fully populated nonce map

    Raises:
        ContentInvalidError: If the content is malformed or does not match
            the schema
        CreatorMismatchError: If the signer is not the content creator
        ChainVerificationError: If a legitimation does not verify
    """
    try:
        check_content(content)
        validate(content, schema, schema_service)
    except (ContentMalformedError, SchemaMismatchError, SchemaMalformedError) as exc:
        raise ContentInvalidError(
            f"Content failed validation: {exc.message}",
            {"cause": exc.to_dict()},
        ) from exc

    if signer.address != content.creator:
        raise CreatorMismatchError(
            "Signer address does not match content creator",
            {"creator": content.creator, "signer": signer.address},
        )

    attached = tuple(legitimations)
    for legitimation in attached:
        verify_chain(legitimation, options=options)

    commitment = commit(
        content,
        nonces=nonces,
        options=options,
        legitimation_hashes=[legitimation.root_hash for legitimation in attached],
    )
    envelope = ProofEnvelope(
        content=content,
        content_hashes=tuple(commitment.content_hashes),
        content_nonce_map=dict(commitment.content_nonce_map),
        legitimations=attached,
        creator_signature=signer.sign(commitment.root_hash.encode("utf-8")),
        root_hash=commitment.root_hash,
        content_id=content_id_for(commitment.root_hash, options),
        link=link,
    )
    logger.debug(
        "Built envelope %s with %d fields and %d legitimations",
        envelope.content_id, len(commitment.content_hashes), len(attached),
    )
    return envelope


def select_paths(contents: Mapping[str, Any], field_names: Iterable[str]) -> set[str]:
    """
    Resolve field names (top-level keys or dotted paths) to leaf paths.

    A name selects every leaf equal to it or nested under it.

    Raises:
        UnknownFieldError: If a name matches no leaf
    """
    leaves = [path for path, _ in flatten_contents(contents)]
    selected: set[str] = set()
    for name in field_names:
        matched = [p for p in leaves if p == name or p.startswith(name + ".")]
        if not matched:
            raise UnknownFieldError(name)
        selected.update(matched)
    return selected


def _rebuild_contents(contents: Mapping[str, Any], paths: set[str]) -> dict[str, Any]:
    rebuilt: dict[str, Any] = {}
    for path, value in flatten_contents(contents):
        if path not in paths:
            continue
        *parents, leaf = path.split(".")
        node = rebuilt
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return rebuilt


def disclose(
    envelope: ProofEnvelope,
    field_names: Iterable[str],
    options: KernelOptions | None = None,
) -> ProofEnvelope:
    """
    Derive an envelope revealing only the named fields.

    Field names are top-level keys or dotted paths into nested objects.
    Hidden fields are removed from the content and their digests from the
    nonce map; content_hashes, root_hash and creator_signature are kept, so
    the result still verifies.

    Raises:
        UnknownFieldError: If a name is not present in the envelope content
        NonceMapMalformedError: If a selected field has no nonce to reveal
    """
    if isinstance(field_names, str):
        field_names = [field_names]
    check_shape(envelope)

    contents = envelope.content.contents
    selected = select_paths(contents, field_names)
    binding = bind_fields(contents, envelope.content_nonce_map, get_hasher(options))

    missing = sorted(p for p in selected if p not in binding.matched)
    if missing:
        raise NonceMapMalformedError(
            "Selected fields have no matching nonce",
            {"fields": missing},
        )

    nonce_map = {
        binding.matched[path]: envelope.content_nonce_map[binding.matched[path]]
        for path in selected
    }
    disclosed = dataclasses.replace(
        envelope,
        content=envelope.content.with_contents(_rebuild_contents(contents, selected)),
        content_nonce_map=nonce_map,
    )
    logger.debug(
        "Disclosed %d of %d fields of %s",
        len(nonce_map), len(envelope.content_hashes or []), envelope.content_id,
    )
    return disclosed
