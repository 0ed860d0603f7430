"""
Filter predicates for bulk select, delete and update statements.

A ``Where`` is a conjunction of ``Equals`` and ``In`` predicates. Backends
either evaluate predicates against row dictionaries (in-memory) or render
them to parameterized SQL.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Iterator


@dataclass(frozen=True)
class Equals:
    """``column = value``"""

    column: str
    value: Any

    def matches(self, row: dict[str, Any]) -> bool:
        return row.get(self.column) == self.value


@dataclass(frozen=True, init=False)
class In:
    """
    ``column IN (values...)``

    Values are de-duplicated keeping first-seen order so rendered
    statements are deterministic. An empty value set matches nothing.
    """

    column: str
    values: tuple

    def __init__(self, column: str, values: Iterable[Any]):
        object.__setattr__(self, "column", column)
        object.__setattr__(self, "values", tuple(dict.fromkeys(values)))

    def matches(self, row: dict[str, Any]) -> bool:
        return row.get(self.column) in self.values


class Where:
    """Conjunction (AND) of predicates."""

    __slots__ = ("predicates",)

    def __init__(self, *predicates: Equals | In):
        for predicate in predicates:
            if not isinstance(predicate, (Equals, In)):
                raise TypeError(f"Unsupported predicate: {predicate!r}")
        self.predicates = tuple(predicates)

    def matches(self, row: dict[str, Any]) -> bool:
        return all(predicate.matches(row) for predicate in self.predicates)

    def __iter__(self) -> Iterator[Equals | In]:
        return iter(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Where):
            return NotImplemented
        return self.predicates == other.predicates

    def __hash__(self) -> int:
        return hash(self.predicates)

    def __repr__(self) -> str:
        return f"Where({', '.join(repr(p) for p in self.predicates)})"
