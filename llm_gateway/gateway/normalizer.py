"""Response Normalizer: small post-processing helpers shared by adapters.

  - Coerces extracted completion text to ``str`` (non-strings become empty)
  - Collapses the various backend usage objects into a single token count
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def normalize_text(text: Any) -> str:
    """Coerce an extracted completion to ``str``; non-strings become empty."""
    if not isinstance(text, str):
        return ""
    return text


def count_tokens(usage: Mapping[str, Any] | None) -> int:
    """Best-effort total token count from a backend usage object.

    OpenAI-style usage reports ``total_tokens``; Anthropic reports
    ``input_tokens``/``output_tokens``; Gemini reports ``totalTokenCount``.
    Unknown shapes count as zero. Used for advisory usage counters only.
    """
    if not usage:
        return 0
    for key in ("total_tokens", "totalTokenCount"):
        value = usage.get(key)
        if isinstance(value, int) and value > 0:
            return value
    total = 0
    for key in ("input_tokens", "output_tokens", "prompt_tokens", "completion_tokens"):
        value = usage.get(key)
        if isinstance(value, int):
            total += value
    return total
