"""Pull a JSON document out of free-form model output.

Models wrap JSON in markdown fences, add a sentence before or after it, or
run out of tokens halfway through. `extract_clean_json()` isolates the JSON
text and `parse_partial_json()` parses it, repairing truncation if needed.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)(?:```|$)", re.DOTALL)
_DANGLING_KEY_RE = re.compile(r'([{,])\s*"(?:[^"\\]|\\.)*"\s*:?$')
_PARTIAL_LITERAL_RE = re.compile(r"([:\[,]\s*)(?:t|tr|tru|f|fa|fal|fals|n|nu|nul)$")
_PARTIAL_NUMBER_RE = re.compile(r"(\d)[.eE+-]+$")

_CLOSERS = {"{": "}", "[": "]"}


class AnalysisParseError(ValueError):
    """Raised when model output cannot be turned into a JSON object."""
    pass


def extract_clean_json(content: str) -> str:
    """Return the JSON portion of ``content``.

    Handles ```json fenced blocks and prose around the document. The first
    `{` starts the document; a `[` is used only when there is no object. If no
    closing bracket is found the text runs to the end, so truncated output
    is still handed on to `parse_partial_json()`.
    """
    text = (content or "").strip()

    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    start = text.find("{")
    if start == -1:
        start = text.find("[")
    if start == -1:
        return text

    end = _matching_close(text, start)
    if end is None:
        return text[start:]
    return text[start:end + 1]


def _matching_close(text: str, start: int) -> int | None:
    """Index of the bracket closing the one at ``start``, ignoring strings."""
    stack = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i
    return None


def _repair_truncated(text: str) -> str:
    """Close whatever a truncated JSON document left open.

    Unterminated strings are closed, a dangling key or trailing comma is
    dropped, then the open arrays and objects are closed in order.
    """
    stack = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]") and stack:
            stack.pop()

    repaired = text
    if in_string:
        if escaped:
            repaired = repaired[:-1]
        repaired += '"'

    repaired = repaired.rstrip()
    if repaired.endswith(","):
        repaired = repaired[:-1].rstrip()

    # An object key with no value: drop it along with its separator
    if stack and stack[-1] == "}":
        dangling = _DANGLING_KEY_RE.search(repaired)
        if dangling:
            repaired = repaired[:dangling.start()] + ("{" if dangling.group(1) == "{" else "")

    # Literal or number cut mid-token, e.g. `tru` or `1.`
    repaired = _PARTIAL_LITERAL_RE.sub(r"\1null", repaired)
    repaired = _PARTIAL_NUMBER_RE.sub(r"\1", repaired)

    return repaired + "".join(reversed(stack))


def parse_partial_json(text: str) -> Any:
    """Parse JSON text, repairing a truncated document once if needed.

    Raises:
        AnalysisParseError: If the text is empty or still invalid after repair
    """
    if not text or not text.strip():
        raise AnalysisParseError("No JSON content to parse")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.debug("JSON invalid, attempting repair", extra={"content_preview": text[:200]})

    repaired = _repair_truncated(text.strip())
    try:
        result = json.loads(repaired)
    except json.JSONDecodeError as e:
        logger.warning("JSON repair failed", extra={"content_preview": text[:200]})
        raise AnalysisParseError(f"Failed to parse JSON response: {e}") from e

    logger.info("Parsed truncated JSON after repair", extra={"original_length": len(text)})
    return result
