"""Pattern Compiler -- step match text to compiled matchers.

Manifesto:
A step pattern is user-authored regular-expression text.  It is compiled
exactly once, when its definition is built, and a broken pattern is a fatal
registration error: a step that can never match is worse than a run that
refuses to start.

ARCHITECTURE
────────────
::

    compile_pattern(raw)  ── cached; raises PatternCompilationError
    CompiledPattern       ── frozen; .match(text) -> list[Argument] | None
    Argument              ── (offset, value) of one captured group

Matching is anchored at the start of the step text (``re.match``).  Authors
anchor the end with ``$``.

Tags:
    stepglue, framework, patterns, regex

Doc-Types:
    api-reference
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from stepglue.core.errors import PatternCompilationError


@dataclass(frozen=True)
class Argument:
    """A value captured from step text, with its offset in that text."""

    offset: int | None
    value: str | None

    def __str__(self) -> str:
        return "" if self.value is None else self.value


@dataclass(frozen=True)
class CompiledPattern:
    """An immutable compiled step matcher."""

    source: str
    regex: re.Pattern[str]

    @property
    def group_count(self) -> int:
        return self.regex.groups

    def match(self, text: str) -> list[Argument] | None:
        """Return the captured arguments, or ``None`` if *text* does not match."""
        m = self.regex.match(text)
        if m is None:
            return None
        return _arguments(m)

    def match_object(self, text: str) -> re.Match[str] | None:
        return self.regex.match(text)

    def __str__(self) -> str:
        return self.source


def _arguments(m: re.Match[str], base_offset: int = 0) -> list[Argument]:
    args = []
    for index in range(1, (m.re.groups or 0) + 1):
        start = m.start(index)
        if start == -1:
            args.append(Argument(offset=None, value=None))
        else:
            args.append(Argument(offset=base_offset + start, value=m.group(index)))
    return args


def arguments_from(m: re.Match[str], base_offset: int = 0, groups: range | None = None) -> list[Argument]:
    """Build arguments from a match, shifting offsets by *base_offset*.

    *groups* restricts the result to those group numbers.
    """
    args = _arguments(m, base_offset)
    if groups is None:
        return args
    return [args[i - 1] for i in groups]


@functools.lru_cache(maxsize=None)
def _compile(raw: str) -> CompiledPattern:
    try:
        return CompiledPattern(source=raw, regex=re.compile(raw))
    except re.error as e:
        raise PatternCompilationError(raw, cause=e) from e


def compile_pattern(raw: str) -> CompiledPattern:
    """
    Compile raw match text into a :class:`CompiledPattern`.

    Results are cached by text, so the same text always yields the same
    matcher.

    Raises:
        PatternCompilationError: If *raw* is not a string or not valid regex.
    """
    if not isinstance(raw, str):
        raise PatternCompilationError(raw)
    return _compile(raw)
