"""Constant and enum case summarisation."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple, Union

from .values import ArrayBuilder, ArrayKey, PhpValue, ValueKind, is_list, normalise_key, to_plain

TRUNCATION_KEY = "..."


def total_marker(count: int) -> str:
    return f"({count} total)"


class ConstantSet:
    """Ordered constant entries with PHP array key semantics."""

    def __init__(self) -> None:
        self._entries: Dict[ArrayKey, Any] = {}
        self._next_index = 0

    def append(self, value: Any) -> None:
        self.set(self._next_index, value)

    def set(self, key: ArrayKey, value: Any) -> None:
        key = normalise_key(key)
        self._entries[key] = value
        if isinstance(key, int) and key >= self._next_index:
            self._next_index = key + 1

    def items(self) -> List[Tuple[ArrayKey, Any]]:
        return list(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ArrayKey]:
        return iter(self._entries)

    def truncate(self, threshold: int) -> "ConstantSet":
        """Keep the first ``threshold`` entries plus a total marker; no-op when disabled."""
        if threshold <= 0 or len(self) <= threshold:
            return self
        truncated = ConstantSet()
        for key, value in self.items()[:threshold]:
            truncated.set(key, value)
        truncated.set(TRUNCATION_KEY, total_marker(len(self)))
        return truncated

    def to_plain(self) -> Union[List[Any], Dict[ArrayKey, Any]]:
        entries = self.items()
        if is_list(entries):
            return [value for _, value in entries]
        return dict(entries)


def compact_value(value: PhpValue, threshold: int) -> Any:
    """Summarise a constant value: cap flat arrays, describe nested ones."""
    if value.kind is not ValueKind.ARRAY:
        return to_plain(value)
    items = value.items
    if not any(item.kind is ValueKind.ARRAY for _, item in items):
        if threshold > 0 and len(items) > threshold:
            builder = ArrayBuilder()
            for key, item in items[:threshold]:
                if isinstance(key, int):
                    builder.append(item)
                else:
                    builder.set(key, item)
            builder.set(TRUNCATION_KEY, PhpValue.of_string(total_marker(len(items))))
            return to_plain(builder.build())
        return to_plain(value)

    first_key, first_value = items[0]
    key_type = "string" if isinstance(first_key, str) else "int"
    if first_value.kind is ValueKind.ARRAY:
        shape = ", ".join(str(key) for key, _ in first_value.items)
        return f"array<{key_type}, {{{shape}}}> ({len(items)} entries)"
    return f"array<{key_type}> ({len(items)} entries)"


__all__ = ["ConstantSet", "TRUNCATION_KEY", "compact_value", "total_marker"]
