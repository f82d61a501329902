"""Tag filters for hook applicability.

A hook declares zero or more tag expressions.  Each expression is a
comma-separated list of tags that are OR-ed together; a leading ``~``
negates a tag.  All expressions must hold (AND).  A hook with no
expressions applies to every scenario.

    @Before("@web,@mobile", "~@wip")   # (web OR mobile) AND NOT wip
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class TagFilter:
    """Compiled form of a hook's tag expressions."""

    expressions: tuple[str, ...]
    clauses: tuple[tuple[tuple[str, bool], ...], ...]

    @classmethod
    def parse(cls, expressions: Sequence[str]) -> TagFilter:
        clauses = []
        for expression in expressions:
            if not isinstance(expression, str):
                raise TypeError(f"Tag expression must be a string, got {type(expression).__name__}")
            terms = []
            for raw in expression.split(","):
                term = raw.strip()
                if not term:
                    continue
                negated = term.startswith("~")
                tag = term[1:].strip() if negated else term
                if not tag.startswith("@"):
                    raise ValueError(f"Tag {tag!r} in {expression!r} must start with '@'")
                terms.append((tag, negated))
            if not terms:
                raise ValueError(f"Empty tag expression: {expression!r}")
            clauses.append(tuple(terms))
        return cls(expressions=tuple(expressions), clauses=tuple(clauses))

    def matches(self, tags: Iterable[str]) -> bool:
        active = {t if t.startswith("@") else f"@{t}" for t in tags}
        return all(
            any((tag in active) != negated for tag, negated in clause)
            for clause in self.clauses
        )
