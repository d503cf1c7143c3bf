"""
Fixed-position array encoding of envelopes for storage and transport.

Envelope (8 positions):
    [content, content_hashes, content_nonce_map, creator_signature, link,
     legitimations, root_hash, content_id]

Content (4 positions):
    [schema_id, creator, holder, contents]

Legitimations are compressed recursively with the same layout. The format
is versionless: any change to the number or order of positions is a
breaking change, and arrays of the wrong length are rejected, never
patched up.
"""

import json
from typing import Any, Mapping

from .canonical import canonical_json
from .config import KernelOptions
from .content import Content
from .envelope import ProofEnvelope, error_check
from .errors import DecompressionArityError, LegitimationsMissingError, MalformedValueError

CONTENT_ARITY = 4
ENVELOPE_ARITY = 8


def _sort_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _sort_keys(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_sort_keys(item) for item in value]
    return value


def _check_arity(kind: str, value: Any, expected: int) -> None:
    if not isinstance(value, (list, tuple)):
        raise DecompressionArityError(kind, expected, None)
    if len(value) != expected:
        raise DecompressionArityError(kind, expected, len(value))


def compress_content(content: Content) -> list[Any]:
    return [content.schema_id, content.creator, content.holder, _sort_keys(content.contents)]


def decompress_content(data: Any) -> Content:
    _check_arity("content", data, CONTENT_ARITY)
    return Content(schema_id=data[0], creator=data[1], holder=data[2], contents=data[3])


def compress(envelope: ProofEnvelope, options: KernelOptions | None = None) -> list[Any]:
    """
    Compress an envelope into its fixed-position array.

    Runs error_check first; invalid envelopes are never compressed.
    """
    error_check(envelope, options)
    return [
        compress_content(envelope.content),
        list(envelope.content_hashes),
        {digest: envelope.content_nonce_map[digest] for digest in sorted(envelope.content_nonce_map)},
        envelope.creator_signature,
        envelope.link,
        compress_legitimations(envelope.legitimations, options),
        envelope.root_hash,
        envelope.content_id,
    ]


def decompress(data: Any) -> ProofEnvelope:
    """
    Rebuild an envelope from its fixed-position array.

    Only the layout is checked here; verify the result with verify_chain
    before trusting it.

    Raises:
        DecompressionArityError: If an envelope or content array has the
            wrong number of positions, or is not an array
    """
    _check_arity("envelope", data, ENVELOPE_ARITY)
    return ProofEnvelope(
        content=decompress_content(data[0]),
        content_hashes=tuple(data[1]) if isinstance(data[1], (list, tuple)) else data[1],
        content_nonce_map=data[2],
        creator_signature=data[3],
        link=data[4],
        legitimations=decompress_legitimations(data[5]),
        root_hash=data[6],
        content_id=data[7],
    )


def compress_legitimations(legitimations, options: KernelOptions | None = None) -> list[list[Any]]:
    return [compress(legitimation, options) for legitimation in legitimations]


def decompress_legitimations(data: Any) -> tuple[ProofEnvelope, ...]:
    if not isinstance(data, (list, tuple)):
        raise LegitimationsMissingError(type(data).__name__)
    return tuple(decompress(item) for item in data)


def to_json(envelope: ProofEnvelope, options: KernelOptions | None = None) -> str:
    """Canonical JSON text of the compressed envelope."""
    return canonical_json(compress(envelope, options))


def from_json(text: str) -> ProofEnvelope:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedValueError(f"Compressed envelope is not valid JSON: {exc.msg}") from exc
    return decompress(data)
