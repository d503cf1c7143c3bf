"""Legitimation chain verification tests."""

import dataclasses

import pytest

from disclosure_kernel import (
    ChainTooDeepError,
    ChainVerificationError,
    ContentMissingError,
    ErrorCode,
    LegitimationsMissingError,
    RootHashMismatchError,
    SignatureInvalidError,
    verify_chain,
    verify_envelope,
)


def _forge_signature(envelope, signer):
    return dataclasses.replace(
        envelope,
        creator_signature=signer.sign(envelope.root_hash.encode("utf-8")),
    )


@pytest.fixture
def chain(alice, bob, carol, make_envelope):
    """Three levels: carol's leaf legitimates bob, bob's envelope legitimates alice."""
    leaf = make_envelope(carol, {"issuer": "registry"})
    middle = make_envelope(bob, {"role": "auditor"}, legitimations=[leaf])
    root = make_envelope(alice, {"claim": "approved"}, legitimations=[middle])
    return root, middle, leaf


class TestVerifyChain:

    def test_valid_chain(self, chain):
        root, _, _ = chain
        verify_chain(root)

    def test_no_legitimations(self, alice, make_envelope):
        verify_chain(make_envelope(alice))

    def test_bad_middle_reports_depth_one(self, carol, chain):
        root, middle, _ = chain
        broken = dataclasses.replace(root, legitimations=(_forge_signature(middle, carol),))

        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 1
        assert exc_info.value.path == (0,)
        assert isinstance(exc_info.value.cause, SignatureInvalidError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_bad_leaf_reports_depth_two(self, chain):
        root, middle, leaf = chain
        bad_leaf = dataclasses.replace(leaf, root_hash="0x" + "00" * 32)
        bad_middle = dataclasses.replace(middle, legitimations=(bad_leaf,))
        broken = dataclasses.replace(root, legitimations=(bad_middle,))

        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 2
        assert exc_info.value.path == (0, 0)
        assert isinstance(exc_info.value.cause, RootHashMismatchError)

    def test_children_verified_before_parent(self, chain):
        """With both the root and the leaf broken, the leaf is reported."""
        root, middle, leaf = chain
        bad_leaf = dataclasses.replace(leaf, root_hash="0x" + "00" * 32)
        bad_middle = dataclasses.replace(middle, legitimations=(bad_leaf,))
        broken = dataclasses.replace(
            root, legitimations=(bad_middle,), root_hash="0x" + "11" * 32,
        )

        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 2

    def test_bad_root(self, bob, chain):
        root, _, _ = chain
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(_forge_signature(root, bob))
        assert exc_info.value.depth == 0
        assert exc_info.value.path == ()

    def test_second_legitimation_path(self, alice, bob, carol, make_envelope):
        first = make_envelope(bob, {"n": 1})
        second = make_envelope(carol, {"n": 2})
        root = make_envelope(alice, legitimations=[first, second])
        verify_chain(root)

        broken = dataclasses.replace(root, legitimations=(first, _forge_signature(second, bob)))
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 1
        assert exc_info.value.path == (1,)

    def test_malformed_legitimation(self, alice, make_envelope):
        root = make_envelope(alice)
        broken = dataclasses.replace(root, legitimations=("not an envelope",))

        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 1
        assert isinstance(exc_info.value.cause, ContentMissingError)

    def test_missing_legitimations(self, alice, make_envelope):
        broken = dataclasses.replace(make_envelope(alice), legitimations=None)
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(broken)
        assert exc_info.value.depth == 0
        assert isinstance(exc_info.value.cause, LegitimationsMissingError)

    def test_max_depth(self, chain):
        root, _, _ = chain
        verify_chain(root, max_depth=2)

        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(root, max_depth=1)
        assert exc_info.value.depth == 2
        assert isinstance(exc_info.value.cause, ChainTooDeepError)

    def test_deep_chain_is_iterative(self, alice, bob, make_envelope):
        envelope = make_envelope(bob, {"level": 0})
        for level in range(1, 60):
            signer = alice if level % 2 else bob
            envelope = make_envelope(signer, {"level": level}, legitimations=[envelope])
        verify_chain(envelope)


class TestLegitimationBinding:

    def test_stripped_legitimations(self, chain):
        root, _, _ = chain
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(dataclasses.replace(root, legitimations=()))
        assert exc_info.value.depth == 0
        assert isinstance(exc_info.value.cause, RootHashMismatchError)

    def test_swapped_legitimation(self, bob, chain, make_envelope):
        root, _, _ = chain
        other = make_envelope(bob, {"role": "auditor"})
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(dataclasses.replace(root, legitimations=(other,)))
        assert exc_info.value.depth == 0
        assert exc_info.value.path == ()
        assert isinstance(exc_info.value.cause, RootHashMismatchError)

    def test_added_legitimation(self, alice, carol, make_envelope):
        root = make_envelope(alice)
        extra = make_envelope(carol)
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(dataclasses.replace(root, legitimations=(extra,)))
        assert exc_info.value.depth == 0

    def test_reordered_legitimations(self, alice, bob, carol, make_envelope):
        first = make_envelope(bob, {"n": 1})
        second = make_envelope(carol, {"n": 2})
        root = make_envelope(alice, legitimations=[first, second])
        with pytest.raises(ChainVerificationError) as exc_info:
            verify_chain(dataclasses.replace(root, legitimations=(second, first)))
        assert isinstance(exc_info.value.cause, RootHashMismatchError)
        verify_chain(envelope)


class TestBuildWithLegitimations:

    def test_invalid_legitimation_rejected(self, alice, carol, make_envelope):
        bad = _forge_signature(make_envelope(carol), alice)
        with pytest.raises(ChainVerificationError) as exc_info:
            make_envelope(alice, legitimations=[bad])
        assert exc_info.value.depth == 0


class TestVerifyEnvelope:

    def test_valid(self, chain):
        root, _, _ = chain
        result = verify_envelope(root)
        assert result.valid
        assert result.errors == []

    def test_invalid_reports_code_and_depth(self, carol, chain):
        root, middle, _ = chain
        broken = dataclasses.replace(root, legitimations=(_forge_signature(middle, carol),))

        result = verify_envelope(broken)
        assert not result.valid
        error = result.errors[0]
        assert error.code == ErrorCode.SIGNATURE_INVALID
        assert error.details["depth"] == 1
        assert error.details["path"] == [0]
        assert result.to_dict()["errors"][0]["code"] == "SIGNATURE_INVALID"
