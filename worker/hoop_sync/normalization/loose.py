"""Typed accessor for loosely shaped provider JSON.

Provider event metadata mixes strings, numbers and nested objects for the
same field depending on endpoint (a score may be `"112"`, `112` or
`{"value": 112.0}`). LooseNode wraps any decoded JSON value and exposes
explicit optional-field accessors so parsers never index blindly.
"""

from __future__ import annotations

from typing import Any, Iterator

from ..utils.parsing import last_path_segment, parse_float, parse_int


class LooseNode:
    __slots__ = ("_value",)

    def __init__(self, value: Any = None) -> None:
        self._value = value.raw if isinstance(value, LooseNode) else value

    def __repr__(self) -> str:
        return f"LooseNode({self._value!r})"

    def __bool__(self) -> bool:
        return not self.is_missing

    @property
    def raw(self) -> Any:
        return self._value

    @property
    def is_missing(self) -> bool:
        return self._value is None

    def get(self, *path: str | int) -> LooseNode:
        """Walk dict keys / list indexes; any miss yields an empty node."""
        current = self._value
        for step in path:
            if isinstance(step, int) and isinstance(current, list):
                current = current[step] if -len(current) <= step < len(current) else None
            elif isinstance(step, str) and isinstance(current, dict):
                current = current.get(step)
            else:
                current = None
            if current is None:
                break
        return LooseNode(current)

    def first(self, *keys: str) -> LooseNode:
        """Return the first present key among ``keys``."""
        for key in keys:
            node = self.get(key)
            if not node.is_missing:
                return node
        return LooseNode(None)

    def text(self, default: str | None = None) -> str | None:
        value = self._value
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            return text or default
        return default

    def integer(self, default: int | None = None) -> int | None:
        """Integer from a string, number, or `{value|displayValue: ...}` object."""
        value = self._value
        if isinstance(value, dict):
            nested = self.first("value", "displayValue")
            return nested.integer(default)
        parsed = parse_int(value)
        return default if parsed is None else parsed

    def number(self, default: float | None = None) -> float | None:
        value = self._value
        if isinstance(value, dict):
            return self.first("value", "displayValue").number(default)
        parsed = parse_float(value)
        return default if parsed is None else parsed

    def boolean(self, default: bool = False) -> bool:
        value = self._value
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes"):
                return True
            if lowered in ("false", "0", "no"):
                return False
        if isinstance(value, (int, float)):
            return bool(value)
        return default

    def items(self) -> list[LooseNode]:
        if isinstance(self._value, list):
            return [LooseNode(item) for item in self._value]
        return []

    def entries(self) -> Iterator[tuple[str, LooseNode]]:
        if isinstance(self._value, dict):
            for key, value in self._value.items():
                yield str(key), LooseNode(value)

    def ref_id(self) -> str | None:
        """ID from an object's `id`, else the last segment of its `$ref`."""
        if isinstance(self._value, dict):
            explicit = self.get("id").text()
            if explicit:
                return explicit
            return last_path_segment(self.get("$ref").text())
        return last_path_segment(self.text())
