"""
Error codes and types for disclosure-kernel.

Every failure names the invariant it violates through an ErrorCode, so
callers can tell tampering apart from malformed transport. The same codes
are used by raised exceptions and by VerificationResult records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Error codes shared by exceptions and verification results.
    """
    # Input shape
    CONTENT_MISSING = "CONTENT_MISSING"
    CONTENT_MALFORMED = "CONTENT_MALFORMED"
    LEGITIMATIONS_MISSING = "LEGITIMATIONS_MISSING"
    NONCE_MAP_MISSING = "NONCE_MAP_MISSING"
    # Malformed data
    NONCE_MAP_MALFORMED = "NONCE_MAP_MALFORMED"
    DECOMPRESSION_ARITY = "DECOMPRESSION_ARITY"
    MALFORMED_VALUE = "MALFORMED_VALUE"
    SCHEMA_MALFORMED = "SCHEMA_MALFORMED"
    FIELD_LIMIT_EXCEEDED = "FIELD_LIMIT_EXCEEDED"
    # Integrity
    ROOT_HASH_MISMATCH = "ROOT_HASH_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    # Validation
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    CONTENT_INVALID = "CONTENT_INVALID"
    # Identity
    CREATOR_MISMATCH = "CREATOR_MISMATCH"
    HOLDER_MISMATCH = "HOLDER_MISMATCH"
    CHALLENGE_MISMATCH = "CHALLENGE_MISMATCH"
    # Chain
    CHAIN_INVALID = "CHAIN_INVALID"
    CHAIN_TOO_DEEP = "CHAIN_TOO_DEEP"


class ProofError(Exception):
    """
    Base class for every error raised by disclosure-kernel.
    """
    code: ErrorCode = ErrorCode.CONTENT_INVALID

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# ---------------------------------------------------------------------------
# Input-shape errors
# ---------------------------------------------------------------------------


class InputShapeError(ProofError):
    """Required input is absent or has the wrong shape."""


class ContentMissingError(InputShapeError):
    code = ErrorCode.CONTENT_MISSING

    def __init__(self):
        super().__init__("Envelope content not provided")


class ContentMalformedError(InputShapeError):
    code = ErrorCode.CONTENT_MALFORMED


class LegitimationsMissingError(InputShapeError):
    code = ErrorCode.LEGITIMATIONS_MISSING

    def __init__(self, received: str = "None"):
        super().__init__(
            "Legitimations must be a sequence (empty is allowed)",
            {"received": received},
        )


class NonceMapMissingError(InputShapeError):
    code = ErrorCode.NONCE_MAP_MISSING

    def __init__(self):
        super().__init__("Content nonce map not provided")


# ---------------------------------------------------------------------------
# Malformed-data errors
# ---------------------------------------------------------------------------


class MalformedDataError(ProofError):
    """Input is corrupted or adversarial. Never repaired."""


class NonceMapMalformedError(MalformedDataError):
    code = ErrorCode.NONCE_MAP_MALFORMED


class MalformedValueError(MalformedDataError):
    code = ErrorCode.MALFORMED_VALUE


class SchemaMalformedError(MalformedDataError):
    code = ErrorCode.SCHEMA_MALFORMED


class FieldLimitExceededError(MalformedDataError):
    code = ErrorCode.FIELD_LIMIT_EXCEEDED


class DecompressionArityError(MalformedDataError):
    code = ErrorCode.DECOMPRESSION_ARITY

    def __init__(self, kind: str, expected: int, actual: int | None):
        received = "not an array" if actual is None else f"{actual} elements"
        super().__init__(
            f"Cannot decompress {kind}: expected array of {expected} elements, got {received}",
            {"kind": kind, "expected": expected, "actual": actual},
        )
        self.kind = kind
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Integrity errors
# ---------------------------------------------------------------------------


class IntegrityError(ProofError):
    """Tampering or a caller bug. Always fails closed."""


class RootHashMismatchError(IntegrityError):
    code = ErrorCode.ROOT_HASH_MISMATCH


class SignatureInvalidError(IntegrityError):
    code = ErrorCode.SIGNATURE_INVALID


class UnknownFieldError(IntegrityError):
    code = ErrorCode.UNKNOWN_FIELD

    def __init__(self, field_name: str):
        super().__init__(
            f"Field not present in content: {field_name}",
            {"field": field_name},
        )
        self.field_name = field_name


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class ValidationFailure(ProofError):
    """Content does not match its schema."""


class SchemaMismatchError(ValidationFailure):
    code = ErrorCode.SCHEMA_MISMATCH

    def __init__(self, field_path: str, expected_type: str | None, reason: str = ""):
        expected = expected_type or "no declared property"
        message = f"Field {field_path!r} does not match schema (expected {expected})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            {"field": field_path, "expected_type": expected_type},
        )
        self.field_path = field_path
        self.expected_type = expected_type


class ContentInvalidError(ValidationFailure):
    code = ErrorCode.CONTENT_INVALID


# ---------------------------------------------------------------------------
# Identity errors
# ---------------------------------------------------------------------------


class IdentityError(ProofError):
    """A signer does not match the party named in the content."""


class CreatorMismatchError(IdentityError):
    code = ErrorCode.CREATOR_MISMATCH


class HolderMismatchError(IdentityError):
    code = ErrorCode.HOLDER_MISMATCH


class ChallengeMismatchError(IdentityError):
    code = ErrorCode.CHALLENGE_MISMATCH


# ---------------------------------------------------------------------------
# Chain errors
# ---------------------------------------------------------------------------


class ChainTooDeepError(ProofError):
    code = ErrorCode.CHAIN_TOO_DEEP


class ChainVerificationError(ProofError):
    """
    A legitimation chain failed at a given depth (0 is the root envelope).

    `path` lists the legitimation indices leading from the root to the
    failing envelope. The original error is kept as `cause` and chained
    through `__cause__`.
    """
    code = ErrorCode.CHAIN_INVALID

    def __init__(self, depth: int, cause: ProofError, path: tuple[int, ...] = ()):
        super().__init__(
            f"Legitimation chain invalid at depth {depth}: {cause.message}",
            {
                "depth": depth,
                "path": list(path),
                "cause": cause.to_dict(),
            },
        )
        self.depth = depth
        self.cause = cause
        self.path = path


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass
class VerificationError:
    """
    A single verification error with typed code and audit details.
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


@dataclass
class VerificationResult:
    """
    Result of a verification operation.
    """
    valid: bool
    errors: list[VerificationError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }
