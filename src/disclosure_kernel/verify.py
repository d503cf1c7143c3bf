"""
Offline verification of proof envelopes and their legitimation chains.

verify_integrity re-hashes the disclosed fields of a single envelope with the
nonces it carries, recomputes the root hash and checks the creator
signature. It never regenerates nonces, so an envelope verifies the same
way whether none, some, or all of its fields are disclosed.

verify_chain walks the legitimation tree with an explicit stack, children
before their parent, and stops at the first failure.
"""

import hmac
import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping

from .commit import bind_fields, compute_root_hash, header_digest
from .config import DEFAULT_OPTIONS, KernelOptions
from .content import check_content
from .errors import (
    ChainTooDeepError,
    ChainVerificationError,
    ContentMissingError,
    FieldLimitExceededError,
    LegitimationsMissingError,
    NonceMapMalformedError,
    NonceMapMissingError,
    ProofError,
    RootHashMismatchError,
    SignatureInvalidError,
    VerificationError,
    VerificationResult,
)
from .hashing import content_id_for, get_hasher, is_hash
from .sign import verify_signature

if TYPE_CHECKING:
    from .envelope import ProofEnvelope

logger = logging.getLogger(__name__)

SignatureVerifier = Callable[[str, bytes, str], bool]


def _safe_equal(left: Any, right: Any) -> bool:
    """
    Constant-time string comparison to prevent timing side-channel attacks.
    """
    left = left if isinstance(left, str) else str(left or "")
    right = right if isinstance(right, str) else str(right or "")
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def check_shape(envelope: Any) -> None:
    """
    Check that an envelope carries everything verification needs.

    Raises, in order:
        ContentMissingError, ContentMalformedError, LegitimationsMissingError,
        NonceMapMissingError, NonceMapMalformedError
    """
    content = getattr(envelope, "content", None)
    if content is None:
        raise ContentMissingError()
    check_content(content)

    legitimations = getattr(envelope, "legitimations", None)
    if not isinstance(legitimations, (list, tuple)):
        raise LegitimationsMissingError(type(legitimations).__name__)

    nonce_map = getattr(envelope, "content_nonce_map", None)
    if nonce_map is None:
        raise NonceMapMissingError()
    if not isinstance(nonce_map, Mapping):
        raise NonceMapMalformedError(
            "Content nonce map must be a mapping",
            {"received": type(nonce_map).__name__},
        )
    for digest, nonce in nonce_map.items():
        if not is_hash(digest) or not isinstance(nonce, str) or not nonce:
            raise NonceMapMalformedError(
                "Content nonce map has a malformed entry",
                {"digest": digest if isinstance(digest, str) else repr(digest)},
            )


def verify_integrity(
    envelope: "ProofEnvelope",
    options: KernelOptions | None = None,
    signature_verifier: SignatureVerifier | None = None,
) -> None:
    """
    Verify a single envelope against its own commitment and signature.

    Checks the envelope shape (see check_shape), then, in order:
        1. content_hashes is within the configured field limit
        2. every nonce-map digest is one of content_hashes
        3. every (digest, nonce) pair reproduces a revealed field, and every
           revealed field is covered by such a pair
        4. root_hash equals the hash of the sorted content_hashes, the
           header digest and the legitimation root hashes
        5. content_id is derived from root_hash
        6. creator_signature verifies against the creator over root_hash

    Legitimations themselves are not verified here; see verify_chain.

    Raises:
        FieldLimitExceededError: content_hashes is longer than max_fields
        NonceMapMalformedError: A nonce-map key is not in content_hashes
        RootHashMismatchError: Revealed data, header, legitimations or the
            root hash do not match
        SignatureInvalidError: The creator signature does not verify
    """
    check_shape(envelope)
    opts = options or DEFAULT_OPTIONS
    hasher = get_hasher(opts)
    verifier = signature_verifier or verify_signature

    content_hashes = envelope.content_hashes
    if not isinstance(content_hashes, (list, tuple)) or not all(is_hash(h) for h in content_hashes):
        raise RootHashMismatchError(
            "Content hashes must be a list of hashes",
            {"received": type(content_hashes).__name__},
        )
    if opts.max_fields is not None and len(content_hashes) > opts.max_fields:
        raise FieldLimitExceededError(
            f"Envelope commits to {len(content_hashes)} fields, limit is {opts.max_fields}",
            {"fields": len(content_hashes), "max_fields": opts.max_fields},
        )

    committed = set(content_hashes)
    nonce_map = envelope.content_nonce_map
    outside = sorted(d for d in nonce_map if d not in committed)
    if outside:
        raise NonceMapMalformedError(
            "Nonce map contains digests that are not part of content_hashes",
            {"digests": outside},
        )

    binding = bind_fields(envelope.content.contents, nonce_map, hasher)
    if binding.unbound_paths or binding.unused_digests:
        raise RootHashMismatchError(
            "Revealed fields do not reproduce the committed digests",
            {"fields": binding.unbound_paths, "digests": binding.unused_digests},
        )

    legitimation_hashes = [getattr(item, "root_hash", None) for item in envelope.legitimations]
    malformed = [idx for idx, value in enumerate(legitimation_hashes) if not is_hash(value)]
    if malformed:
        raise RootHashMismatchError(
            "Legitimations must carry a root hash",
            {"legitimations": malformed},
        )

    expected_root = compute_root_hash(
        content_hashes,
        hasher,
        header=header_digest(envelope.content, hasher),
        legitimation_hashes=legitimation_hashes,
    )
    if not _safe_equal(envelope.root_hash, expected_root):
        raise RootHashMismatchError(
            "Root hash does not match computed value",
            {"expected": expected_root, "actual": envelope.root_hash},
        )

    expected_id = content_id_for(envelope.root_hash, opts)
    if not _safe_equal(envelope.content_id, expected_id):
        raise RootHashMismatchError(
            "Content id is not derived from the root hash",
            {"expected": expected_id, "actual": envelope.content_id},
        )

    creator = envelope.content.creator
    if not verifier(creator, envelope.root_hash.encode("utf-8"), envelope.creator_signature):
        raise SignatureInvalidError(
            "Creator signature verification failed",
            {"creator": creator},
        )


def verify_chain(
    envelope: "ProofEnvelope",
    max_depth: int | None = None,
    options: KernelOptions | None = None,
    signature_verifier: SignatureVerifier | None = None,
) -> None:
    """
    Verify an envelope and every legitimation below it, bottom-up.

    Depth 0 is the envelope itself, its legitimations are depth 1, and so
    on. An envelope without legitimations is valid if it is valid on its own.

    Args:
        envelope: Root of the legitimation tree
        max_depth: Optional deepest level callers accept
        options: Kernel options
        signature_verifier: Override for the signing service's verify

    Raises:
        ChainVerificationError: With the failing depth, index path and the
            original error as `cause`
    """
    # (envelope, depth, index path, children already pushed)
    stack: list[tuple[Any, int, tuple[int, ...], bool]] = [(envelope, 0, (), False)]

    while stack:
        node, depth, path, expanded = stack.pop()
        try:
            if max_depth is not None and depth > max_depth:
                raise ChainTooDeepError(
                    f"Legitimation chain exceeds maximum depth {max_depth}",
                    {"max_depth": max_depth},
                )
            if not expanded:
                check_shape(node)
                stack.append((node, depth, path, True))
                children = list(enumerate(node.legitimations))
                for idx, child in reversed(children):
                    stack.append((child, depth + 1, path + (idx,), False))
                continue
            verify_integrity(node, options, signature_verifier)
        except ProofError as exc:
            logger.warning(
                "Legitimation chain invalid at depth %d (path %s): %s",
                depth, list(path), exc.code.value,
            )
            raise ChainVerificationError(depth, exc, path) from exc

    logger.debug("Verified legitimation chain rooted at %s", getattr(envelope, "content_id", None))


def verify_envelope(
    envelope: "ProofEnvelope",
    max_depth: int | None = None,
    options: KernelOptions | None = None,
) -> VerificationResult:
    """
    Non-raising form of verify_chain.

    Returns:
        VerificationResult with valid flag and at most one error, carrying
        the failing code plus depth and path details
    """
    try:
        verify_chain(envelope, max_depth=max_depth, options=options)
    except ChainVerificationError as exc:
        details = dict(exc.cause.details)
        details.update({"depth": exc.depth, "path": list(exc.path)})
        return VerificationResult(
            valid=False,
            errors=[VerificationError(code=exc.cause.code, message=exc.message, details=details)],
        )
    return VerificationResult(valid=True, errors=[])
