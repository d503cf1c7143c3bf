"""
Presentations: what a holder hands to a verifier.

A presentation is a disclosed envelope, optionally signed by the holder over
a verifier-supplied challenge so the verifier knows the holder is present
and the presentation is not replayed.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from .canonical import canonical_bytes
from .codec import compress
from .config import KernelOptions
from .envelope import ProofEnvelope, disclose, select_paths
from .errors import (
    ChallengeMismatchError,
    HolderMismatchError,
    SignatureInvalidError,
)
from .sign import Signer, verify_signature
from .verify import check_shape, verify_chain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Presentation:
    envelope: ProofEnvelope
    challenge: str | None = None
    signature: str | None = None

    @property
    def presenter(self) -> str | None:
        """Address expected to sign: the holder, or the creator when there is none."""
        return self.envelope.holder or self.envelope.creator

    def is_signed(self) -> bool:
        return bool(self.signature)


def signing_input(
    envelope: ProofEnvelope,
    challenge: str | None,
    options: KernelOptions | None = None,
) -> bytes:
    return canonical_bytes({"envelope": compress(envelope, options), "challenge": challenge})


def create_presentation(
    envelope: ProofEnvelope,
    show: Iterable[str] | None = None,
    hide: Iterable[str] = (),
    signer: Signer | None = None,
    challenge: str | None = None,
    options: KernelOptions | None = None,
) -> Presentation:
    """
    Disclose fields of an envelope for a verifier.

    Args:
        envelope: Envelope held by the presenter
        show: Field names or dotted paths to reveal (default: every
            revealed field)
        hide: Field names or dotted paths to withhold, applied after
            `show`; hiding a name also hides everything nested under it
        signer: Holder signing capability; signs envelope and challenge
        challenge: Verifier-supplied nonce bound into the signature

    Raises:
        UnknownFieldError: If show/hide name a field the envelope lacks
        HolderMismatchError: If the signer is not the holder
    """
    if isinstance(show, str):
        show = [show]
    if isinstance(hide, str):
        hide = [hide]
    check_shape(envelope)

    contents = envelope.content.contents
    shown = select_paths(contents, envelope.fields() if show is None else show)
    hidden = select_paths(contents, hide)

    disclosed = disclose(envelope, sorted(shown - hidden), options)

    if signer is None:
        return Presentation(envelope=disclosed, challenge=challenge)

    expected = disclosed.holder or disclosed.creator
    if signer.address != expected:
        raise HolderMismatchError(
            "Presentation signer is not the envelope holder",
            {"holder": expected, "signer": signer.address},
        )
    signature = signer.sign(signing_input(disclosed, challenge, options))
    logger.debug("Signed presentation of %s", disclosed.content_id)
    return Presentation(envelope=disclosed, challenge=challenge, signature=signature)


def verify_presentation(
    presentation: Presentation,
    challenge: str | None = None,
    max_depth: int | None = None,
    options: KernelOptions | None = None,
) -> None:
    """
    Verify a presentation.

    Verifies the legitimation chain of the disclosed envelope. When a
    challenge is expected, the presentation must carry the same challenge
    and a valid holder signature over it.

    Raises:
        ChainVerificationError: If the envelope or a legitimation is invalid
        ChallengeMismatchError: If the challenge differs from the expected one
        SignatureInvalidError: If the holder signature is missing or invalid
    """
    verify_chain(presentation.envelope, max_depth=max_depth, options=options)

    if challenge is not None and presentation.challenge != challenge:
        raise ChallengeMismatchError(
            "Presentation challenge does not match",
            {"expected": challenge, "actual": presentation.challenge},
        )

    if not presentation.is_signed():
        if challenge is not None:
            raise SignatureInvalidError("Challenge given but presentation is not signed")
        return

    message = signing_input(presentation.envelope, presentation.challenge, options)
    if not verify_signature(presentation.presenter, message, presentation.signature):
        raise SignatureInvalidError(
            "Presentation signature verification failed",
            {"presenter": presentation.presenter},
        )
