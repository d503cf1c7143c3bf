"""Shared fixtures for disclosure-kernel tests."""

import sys
from pathlib import Path

import pytest

# Add parent src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from disclosure_kernel import Content, Ed25519Signer, build


PERSON_SCHEMA = {
    "$id": "schema:person",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "age": {"type": "integer"},
        "address": {
            "type": "object",
            "properties": {
                "city": {"type": "string"},
                "zip": {"type": "string"},
            },
        },
    },
    "required": ["name"],
    "additionalProperties": False,
}

OPEN_SCHEMA = {
    "$id": "schema:open",
    "type": "object",
    "properties": {},
    "additionalProperties": True,
}


@pytest.fixture
def alice():
    return Ed25519Signer.generate()


@pytest.fixture
def bob():
    return Ed25519Signer.generate()


@pytest.fixture
def carol():
    return Ed25519Signer.generate()


@pytest.fixture
def person_schema():
    return PERSON_SCHEMA


@pytest.fixture
def open_schema():
    return OPEN_SCHEMA


@pytest.fixture
def alice_content(alice):
    return Content(
        schema_id="schema:person",
        contents={"name": "Alice", "age": 29},
        creator=alice.address,
    )


@pytest.fixture
def alice_envelope(alice, alice_content):
    return build(alice_content, PERSON_SCHEMA, alice)


@pytest.fixture
def make_envelope():
    """Build an envelope on the open schema for the given signer."""

    def _make(signer, contents=None, legitimations=(), holder=None, link=None):
        content = Content(
            schema_id="schema:open",
            contents=contents if contents is not None else {"role": "member"},
            creator=signer.address,
            holder=holder,
        )
        return build(content, OPEN_SCHEMA, signer, legitimations=legitimations, link=link)

    return _make
