"""Snippet suggestions for undefined steps.

Generating the suggested glue code is a formatter concern.  The backend only
forwards the unmatched step to whatever :class:`SnippetGenerator` the runner
configured.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SnippetGenerator(Protocol):
    def get_snippet(self, step_text: str, keyword: str) -> str: ...
