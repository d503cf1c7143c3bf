"""Envelope summary tests."""

from disclosure_kernel import disclose, envelope_summary, format_envelope_summary
from disclosure_kernel.summary import chain_depth


def test_summary_fields(alice, alice_envelope):
    s = envelope_summary(alice_envelope)

    assert s["content_id"] == alice_envelope.content_id
    assert s["schema_id"] == "schema:person"
    assert s["creator"] == alice.address
    assert s["holder"] is None
    assert s["disclosed_fields"] == ["age", "name"]
    assert s["disclosed_count"] == 2
    assert s["total_fields"] == 2
    assert s["legitimations"] == 0
    assert s["chain_depth"] == 0
    assert s["root_hash"] == alice_envelope.root_hash


def test_summary_after_disclosure(alice_envelope):
    s = envelope_summary(disclose(alice_envelope, ["age"]))
    assert s["disclosed_fields"] == ["age"]
    assert s["disclosed_count"] == 1
    assert s["total_fields"] == 2


def test_chain_depth(alice, bob, carol, make_envelope):
    leaf = make_envelope(carol)
    middle = make_envelope(bob, legitimations=[leaf])
    root = make_envelope(alice, legitimations=[middle, make_envelope(carol)])

    assert chain_depth(leaf) == 0
    assert chain_depth(root) == 2
    assert envelope_summary(root)["legitimations"] == 2


def test_format_summary(alice_envelope):
    line = format_envelope_summary(disclose(alice_envelope, ["age"]))

    assert line.startswith(f"{alice_envelope.content_id} (schema:person) | ")
    assert "1/2 fields [age]" in line
    assert "0 legitimations" in line
    assert line.endswith(alice_envelope.root_hash[:20] + "...")


def test_format_summary_nothing_disclosed(alice_envelope):
    line = format_envelope_summary(disclose(alice_envelope, []))
    assert "0/2 fields [none]" in line
