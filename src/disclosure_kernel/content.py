"""
Content model: the raw structured data an envelope attests.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ContentMalformedError

_LEAF_TYPES = (str, int, float, bool, type(None))


def freeze_value(value: Any) -> Any:
    """
    Read-only copy of a JSON value: mappings become MappingProxyType views
    over fresh dicts, lists become tuples. Other values are returned as is.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_value(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_value(item) for item in value)
    return value


def thaw_value(value: Any) -> Any:
    """Plain dict/list copy of a value produced by freeze_value."""
    if isinstance(value, Mapping):
        return {key: thaw_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_value(item) for item in value]
    return value


@dataclass(frozen=True)
class Content:
    """
    Structured content bound to a schema.

    `contents` maps field names to JSON values (strings, numbers, booleans,
    null, lists, nested mappings). It is copied into a read-only view on
    construction: nested mappings are MappingProxyType objects and lists
    are tuples, so a committed Content cannot change under the caller's
    feet. Use to_dict() for a mutable copy.
    """
    schema_id: str
    contents: Mapping[str, Any]
    creator: str
    holder: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "contents", freeze_value(self.contents))

    def field_names(self) -> set[str]:
        return set(self.contents.keys())

    def with_contents(self, contents: Mapping[str, Any]) -> "Content":
        return Content(
            schema_id=self.schema_id,
            contents=contents,
            creator=self.creator,
            holder=self.holder,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_id": self.schema_id,
            "contents": thaw_value(self.contents),
            "creator": self.creator,
            "holder": self.holder,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Content":
        return cls(
            schema_id=data.get("schema_id", ""),
            contents=data.get("contents", {}),
            creator=data.get("creator", ""),
            holder=data.get("holder"),
        )


def _check_value(value: Any, path: str) -> None:
    if isinstance(value, _LEAF_TYPES):
        return
    if isinstance(value, (list, tuple)):
        for idx, item in enumerate(value):
            _check_value(item, f"{path}[{idx}]")
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str) or not key or "." in key:
                raise ContentMalformedError(
                    f"Invalid nested field name at {path}: {key!r}",
                    {"field": path, "key": repr(key)},
                )
            _check_value(item, f"{path}.{key}")
        return
    raise ContentMalformedError(
        f"Unsupported value type at {path}: {type(value).__name__}",
        {"field": path, "type": type(value).__name__},
    )


def check_content(content: Content) -> None:
    """
    Check that a Content object is well-formed. Raises ContentMalformedError.

    Field names must be non-empty strings without "." (dots separate nested
    paths in field digests).
    """
    if not isinstance(content, Content):
        raise ContentMalformedError(
            "Content must be a Content instance",
            {"received": type(content).__name__},
        )
    if not isinstance(content.schema_id, str) or not content.schema_id:
        raise ContentMalformedError("Content schema_id not provided", {"field": "schema_id"})
    if not isinstance(content.creator, str) or not content.creator:
        raise ContentMalformedError("Content creator not provided", {"field": "creator"})
    if content.holder is not None and (not isinstance(content.holder, str) or not content.holder):
        raise ContentMalformedError("Content holder must be a non-empty string", {"field": "holder"})
    if not isinstance(content.contents, Mapping):
        raise ContentMalformedError("Content contents must be a mapping", {"field": "contents"})
    for key, value in content.contents.items():
        if not isinstance(key, str) or not key or "." in key:
            raise ContentMalformedError(
                f"Invalid field name: {key!r}",
                {"key": repr(key)},
            )
        _check_value(value, key)
