"""
Envelope summary utilities for human-readable inspection.

Extracts key metadata from envelopes without verifying or modifying them.
"""

from typing import Any

from .envelope import ProofEnvelope


def chain_depth(envelope: ProofEnvelope) -> int:
    """Number of legitimation levels below the envelope (0 if none)."""
    deepest = 0
    stack = [(envelope, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in node.legitimations or ())
    return deepest


def envelope_summary(envelope: ProofEnvelope) -> dict[str, Any]:
    """
    Extract a human-readable summary from an envelope.

    Returns:
        Dict with content_id, schema_id, creator, holder, disclosed_fields,
        disclosed_count, total_fields, legitimations, chain_depth and
        root_hash
    """
    content = envelope.content
    return {
        "content_id": envelope.content_id or "",
        "schema_id": content.schema_id if content else "",
        "creator": envelope.creator or "",
        "holder": envelope.holder,
        "disclosed_fields": sorted(envelope.fields()),
        "disclosed_count": len(envelope.content_nonce_map or {}),
        "total_fields": len(envelope.content_hashes or []),
        "legitimations": len(envelope.legitimations or ()),
        "chain_depth": chain_depth(envelope),
        "root_hash": envelope.root_hash or "",
    }


def format_envelope_summary(envelope: ProofEnvelope) -> str:
    """
    Format an envelope as a single-line human-readable string.

    Returns:
        String like "stream:0xab... (schema:0x12...) | 1/2 fields [age] | 0 legitimations | 0xabc123..."
    """
    s = envelope_summary(envelope)
    root_short = s["root_hash"][:20] + "..." if len(s["root_hash"]) > 20 else s["root_hash"]
    fields = ", ".join(s["disclosed_fields"]) if s["disclosed_fields"] else "none"
    return (
        f"{s['content_id']} ({s['schema_id']}) | "
        f"{s['disclosed_count']}/{s['total_fields']} fields [{fields}] | "
        f"{s['legitimations']} legitimations | {root_short}"
    )
