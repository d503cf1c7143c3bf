"""
disclosure-kernel: selective-disclosure content commitments and verification.

Content is committed field by field with nonce-salted digests and a single
root hash, signed by its creator, nested into legitimation chains, and later
disclosed in part and re-verified without trusting the discloser.
"""

from .canonical import canonical_bytes, canonical_json
from .codec import (
    CONTENT_ARITY,
    ENVELOPE_ARITY,
    compress,
    compress_content,
    decompress,
    decompress_content,
    from_json,
    to_json,
)
from .commit import (
    Commitment,
    commit,
    compute_root_hash,
    flatten_contents,
    generate_nonce,
    header_digest,
)
from .config import ConfigError, KernelOptions
from .content import Content, check_content
from .envelope import ProofEnvelope, build, disclose, error_check, is_proof_envelope
from .errors import (
    ChainTooDeepError,
    ChainVerificationError,
    ChallengeMismatchError,
    ContentInvalidError,
    ContentMalformedError,
    ContentMissingError,
    CreatorMismatchError,
    DecompressionArityError,
    FieldLimitExceededError,
    ErrorCode,
    HolderMismatchError,
    IntegrityError,
    LegitimationsMissingError,
    MalformedValueError,
    NonceMapMalformedError,
    NonceMapMissingError,
    ProofError,
    RootHashMismatchError,
    SchemaMalformedError,
    SchemaMismatchError,
    SignatureInvalidError,
    UnknownFieldError,
    VerificationError,
    VerificationResult,
)
from .hashing import content_id_for, digest_field, hash_str, is_hash
from .presentation import Presentation, create_presentation, verify_presentation
from .schema import JsonSchemaService, check_schema, schema_id_for, validate
from .sign import Ed25519Signer, Signer, verify_signature
from .summary import envelope_summary, format_envelope_summary
from .verify import verify_chain, verify_envelope, verify_integrity

__version__ = "0.1.0"
__all__ = [
    # Canonical JSON
    "canonical_json",
    "canonical_bytes",
    # Hashing
    "digest_field",
    "hash_str",
    "is_hash",
    "content_id_for",
    # Content and commitments
    "Content",
    "check_content",
    "Commitment",
    "commit",
    "compute_root_hash",
    "header_digest",
    "flatten_contents",
    "generate_nonce",
    # Schemas
    "JsonSchemaService",
    "check_schema",
    "schema_id_for",
    "validate",
    # Signing
    "Signer",
    "Ed25519Signer",
    "verify_signature",
    # Envelopes
    "ProofEnvelope",
    "build",
    "disclose",
    "error_check",
    "is_proof_envelope",
    # Verification
    "verify_integrity",
    "verify_chain",
    "verify_envelope",
    # Codec
    "CONTENT_ARITY",
    "ENVELOPE_ARITY",
    "compress",
    "decompress",
    "compress_content",
    "decompress_content",
    "to_json",
    "from_json",
    # Presentations
    "Presentation",
    "create_presentation",
    "verify_presentation",
    # Summaries
    "envelope_summary",
    "format_envelope_summary",
    # Configuration
    "KernelOptions",
    "ConfigError",
    # Errors
    "ErrorCode",
    "ProofError",
    "ContentMissingError",
    "ContentMalformedError",
    "LegitimationsMissingError",
    "NonceMapMissingError",
    "NonceMapMalformedError",
    "MalformedValueError",
    "SchemaMalformedError",
    "DecompressionArityError",
    "FieldLimitExceededError",
    "IntegrityError",
    "RootHashMismatchError",
    "SignatureInvalidError",
    "UnknownFieldError",
    "SchemaMismatchError",
    "ContentInvalidError",
    "CreatorMismatchError",
    "HolderMismatchError",
    "ChallengeMismatchError",
    "ChainTooDeepError",
    "ChainVerificationError",
    "VerificationError",
    "VerificationResult",
]
