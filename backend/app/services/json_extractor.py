"""
FinSight Backend — Tolerant JSON Extraction
=============================================

What:  Recovers a JSON value from free-text LLM completions.
Why:   Models asked for "strictly valid JSON" still wrap it in commentary or
       markdown fences. Failing the whole request over a "Here you go:" prefix
       is worse than a pragmatic recovery.
How:   Ordered strategies, each tried only if the previous one failed.
       The most literal reading (direct parse) always goes first.

Strategies:
    1. direct       — the whole trimmed text
    2. brace_slice  — first "{" through last "}"
    3. json_fence   — content of a ```json ... ``` block (tag case-insensitive)
    4. brace_search — regex search for a greedy {...} span

Rejected as unparsable:
    NaN, Infinity and -Infinity (accepted by json.loads, but not JSON and not
    renderable in a response), and nesting too deep for the decoder.

Known limitation:
    brace_slice and brace_search run from the FIRST "{" to the LAST "}". When a
    completion holds several unrelated objects, the slice spans all of them
    plus the prose between, which then fails to parse (or, rarely, parses as
    something other than the intended object). This is accepted behaviour.
"""

import json
import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from app.exceptions import ParseFailure

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"(\{[\s\S]*\})")


def _direct(text: str) -> Optional[str]:
    return text


def _brace_slice(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first:last + 1]


def _json_fence(text: str) -> Optional[str]:
    match = _FENCE_RE.search(text)
    if not match or not match.group(1):
        return None
    return match.group(1).strip()


def _brace_search(text: str) -> Optional[str]:
    match = _OBJECT_RE.search(text)
    return match.group(1) if match else None


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not JSON and cannot be rendered back out
    raise ValueError(f"non-standard JSON constant {name}")


# Order matters: first success wins
STRATEGIES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("direct", _direct),
    ("brace_slice", _brace_slice),
    ("json_fence", _json_fence),
    ("brace_search", _brace_search),
]


def extract_json(text: Any) -> Any:
    """
    Recover a JSON value from `text`.

    Args:
        text: Raw completion text. Anything other than a non-blank string
              fails immediately.

    Returns:
        The decoded value (dict, list, str, number, bool or None).

    Raises:
        ParseFailure: No strategy produced valid JSON.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseFailure(context={"reason": "no text to parse"})

    trimmed = text.strip()
    for name, candidate_of in STRATEGIES:
        candidate = candidate_of(trimmed)
        if candidate is None:
            continue
        try:
            value = json.loads(candidate, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            continue
        if name != "direct":
            logger.debug("Recovered JSON from model output via %s", name)
        return value

    raise ParseFailure(
        context={
            "strategies": [name for name, _ in STRATEGIES],
            "text_length": len(trimmed),
        }
    )
