"""
Model Output Normalizer.

Generative models are asked for JSON but often wrap it in markdown fences or
answer in loose ``Key: value`` lines. This module turns whatever came back
into a flat record over a fixed set of fields. Decode failures are recovered
here and never reach the caller.
"""

import json
import re
from typing import Optional

from recruitcrm.core.logging import get_logger

logger = get_logger("normalizer")

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```$")
_INNER_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

# Values the model uses to say "I don't know"
SENTINEL_VALUES = {"n/a", "not available"}


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code-fence wrapping around a JSON payload.

    Handles ```json ... ``` and bare ``` ... ``` forms, including a fenced
    block preceded or followed by prose.
    """
    if not text:
        return ""

    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned).strip()

    if "```" in cleaned:
        match = _INNER_FENCE.search(text)
        if match:
            cleaned = match.group(1).strip()

    return cleaned


def decode_json_object(text: str) -> dict:
    """
    Strip fences and decode a JSON object.

    Raises:
        ValueError: if the payload is not valid JSON or not an object
    """
    parsed = json.loads(strip_code_fences(text))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def is_usable_value(value) -> bool:
    """True for a non-empty string that is not a 'not available' sentinel."""
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return bool(stripped) and stripped.lower() not in SENTINEL_VALUES


def _clean_key(raw_key: str) -> str:
    key = raw_key.strip().strip("-*•\"' ").lower()
    return re.sub(r"[^a-z_]+", "_", key).strip("_")


def _clean_value(raw_value: str) -> str:
    value = raw_value.strip().rstrip(",").strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    return value


def scan_key_value_lines(
    text: str,
    fields: list[str],
    aliases: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Line-oriented fallback: read ``Key: value`` lines into known fields.

    Keys are lower-cased and matched against the field names and their
    aliases; anything else is ignored. Only the first colon splits a line so
    URLs survive intact.
    """
    record = {field: "" for field in fields}
    lookup = {field: field for field in fields}
    lookup.update(aliases or {})

    for line in (text or "").splitlines():
        if ":" not in line:
            continue

        raw_key, raw_value = line.split(":", 1)
        field = lookup.get(_clean_key(raw_key))
        if field is None or field not in record:
            continue

        value = _clean_value(raw_value)
        if is_usable_value(value):
            record[field] = value

    return record


def normalize_record(
    text: str,
    fields: list[str],
    aliases: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Turn raw model output into a record over ``fields``.

    Structured decoding is tried first; on failure the text is scanned line by
    line. Missing or unusable values stay as empty strings.
    """
    try:
        parsed = decode_json_object(text)
    except ValueError as e:
        logger.warning(f"Model output is not valid JSON ({e}); scanning lines instead")
        return scan_key_value_lines(text, fields, aliases)

    record = {field: "" for field in fields}
    for field in fields:
        value = parsed.get(field)
        if is_usable_value(value):
            record[field] = value.strip()
    return record
