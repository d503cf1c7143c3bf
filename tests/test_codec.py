"""Fixed-position codec tests."""

import dataclasses

import pytest

from disclosure_kernel import (
    CONTENT_ARITY,
    ENVELOPE_ARITY,
    DecompressionArityError,
    LegitimationsMissingError,
    MalformedValueError,
    RootHashMismatchError,
    compress,
    compress_content,
    decompress,
    decompress_content,
    disclose,
    from_json,
    to_json,
    verify_chain,
)


class TestLayout:

    def test_envelope_positions(self, alice_envelope):
        data = compress(alice_envelope)

        assert len(data) == ENVELOPE_ARITY
        assert data[0] == compress_content(alice_envelope.content)
        assert data[1] == list(alice_envelope.content_hashes)
        assert data[2] == alice_envelope.content_nonce_map
        assert data[3] == alice_envelope.creator_signature
        assert data[4] is None
        assert data[5] == []
        assert data[6] == alice_envelope.root_hash
        assert data[7] == alice_envelope.content_id

    def test_content_positions(self, alice, alice_content):
        data = compress_content(alice_content)
        assert len(data) == CONTENT_ARITY
        assert data == ["schema:person", alice.address, None, {"age": 29, "name": "Alice"}]

    def test_nonce_map_sorted(self, alice_envelope):
        assert list(compress(alice_envelope)[2]) == sorted(alice_envelope.content_nonce_map)

    def test_tampered_envelope_not_compressed(self, alice_envelope):
        forged = dataclasses.replace(alice_envelope, root_hash="0x" + "00" * 32)
        with pytest.raises(RootHashMismatchError):
            compress(forged)


class TestRoundTrip:

    def test_envelope(self, alice_envelope):
        restored = decompress(compress(alice_envelope))
        assert restored == alice_envelope
        verify_chain(restored)

    def test_with_legitimations_and_link(self, alice, bob, make_envelope):
        support = make_envelope(bob, {"role": "notary"})
        envelope = make_envelope(
            alice, legitimations=[support], holder=bob.address, link=support.content_id,
        )
        restored = decompress(compress(envelope))
        assert restored == envelope
        assert restored.legitimations[0] == support
        verify_chain(restored)

    def test_after_disclosure(self, alice_envelope):
        disclosed = disclose(alice_envelope, ["name"])
        restored = decompress(compress(disclosed))
        assert restored == disclosed
        verify_chain(restored)

    def test_json(self, alice_envelope):
        text = to_json(alice_envelope)
        assert from_json(text) == alice_envelope
        assert to_json(from_json(text)) == text


class TestArity:

    def test_missing_position(self, alice_envelope):
        data = compress(alice_envelope)[:-1]
        with pytest.raises(DecompressionArityError) as exc_info:
            decompress(data)
        assert exc_info.value.kind == "envelope"
        assert exc_info.value.expected == 8
        assert exc_info.value.actual == 7

    def test_extra_position(self, alice_envelope):
        data = compress(alice_envelope) + ["extra"]
        with pytest.raises(DecompressionArityError) as exc_info:
            decompress(data)
        assert exc_info.value.actual == 9

    def test_not_an_array(self):
        with pytest.raises(DecompressionArityError) as exc_info:
            decompress({"content": None})
        assert exc_info.value.actual is None

    def test_content_arity(self, alice_envelope):
        data = compress(alice_envelope)
        data[0] = data[0][:3]
        with pytest.raises(DecompressionArityError) as exc_info:
            decompress(data)
        assert exc_info.value.kind == "content"
        assert exc_info.value.expected == 4
        assert exc_info.value.actual == 3

    def test_decompress_content_rejects_object(self):
        with pytest.raises(DecompressionArityError):
            decompress_content({"schema_id": "s"})

    def test_nested_legitimation_arity(self, alice, bob, make_envelope):
        envelope = make_envelope(alice, legitimations=[make_envelope(bob)])
        data = compress(envelope)
        data[5][0] = data[5][0][:6]
        with pytest.raises(DecompressionArityError) as exc_info:
            decompress(data)
        assert exc_info.value.actual == 6

    def test_legitimations_not_an_array(self, alice_envelope):
        data = compress(alice_envelope)
        data[5] = None
        with pytest.raises(LegitimationsMissingError):
            decompress(data)


class TestFromJson:

    def test_invalid_json(self):
        with pytest.raises(MalformedValueError):
            from_json("[1, 2")

    def test_valid_json_wrong_layout(self):
        with pytest.raises(DecompressionArityError):
            from_json("[1, 2, 3]")
