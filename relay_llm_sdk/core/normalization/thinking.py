"""
Reasoning-block sanitizer.

Models that "think out loud" wrap deliberation in ``<think>...</think>``
spans which must never reach end users. A response whose opening marker has
no matching close was cut off mid-reasoning and is reported as partial so
the retry engine can regenerate it.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ...config.constants import THINK_CLOSE_MARKER, THINK_OPEN_MARKER
from ...config.providers import OrphanClosePolicy


@dataclass(frozen=True)
class SanitizeResult:
    """Outcome of sanitizing one raw completion."""
    clean: str
    partial: bool = False


class ThinkingSanitizer:
    """Strips reasoning spans and detects truncated ones."""

    def __init__(self, open_marker: str = THINK_OPEN_MARKER, close_marker: str = THINK_CLOSE_MARKER,
                 orphan_close: OrphanClosePolicy = OrphanClosePolicy.RECONSTRUCT):
        if not open_marker or not close_marker:
            raise ValueError("Reasoning markers must be non-empty")
        self.open_marker = open_marker
        self.close_marker = close_marker
        self.orphan_close = OrphanClosePolicy(orphan_close)
        self._span = re.compile(re.escape(open_marker) + r".*?" + re.escape(close_marker), re.DOTALL)

    def sanitize(self, raw: Optional[str]) -> SanitizeResult:
        """
        Remove every reasoning span from ``raw``.

        - Neither marker: text is returned unchanged.
        - Close marker before any open marker: the opener was truncated
          upstream; a synthetic one is prefixed so the span can be removed
          (or, under ``OrphanClosePolicy.RETRY``, the result is partial).
        - An open marker left unmatched after span removal: partial.
        """
        text = raw or ""
        has_open = self.open_marker in text
        has_close = self.close_marker in text
        if not has_open and not has_close:
            return SanitizeResult(clean=text)

        close_at = text.find(self.close_marker)
        open_at = text.find(self.open_marker)
        if has_close and (not has_open or close_at < open_at):
            if self.orphan_close == OrphanClosePolicy.RETRY:
                return SanitizeResult(clean=text, partial=True)
            text = self.open_marker + text

        stripped = self._span.sub("", text)
        if self.open_marker in stripped:
            return SanitizeResult(clean=raw or "", partial=True)

        stripped = stripped.replace(self.close_marker, "")
        return SanitizeResult(clean=stripped.strip())

    def is_partial(self, raw: Optional[str]) -> bool:
        return self.sanitize(raw).partial
