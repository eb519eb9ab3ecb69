"""
Parsing helpers shared by every provider adapter.

These are plain functions rather than base-class methods so that
adapters, the orchestrator and the validator can all use them
without inheriting from anything.
"""

import json
import re
from datetime import date, datetime
from typing import Any, Optional

from src.providers.errors import (
    InvalidImageDataError,
    MalformedOutputError,
    NoStructuredOutputError,
)


# Values that sometimes end up stored as a "key" by a broken form
PLACEHOLDER_API_KEYS = frozenset({"undefined", "null", "none"})

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

_DATA_URI_MIME = re.compile(r"^data:([^;,]+)[;,]")

_MAGNITUDES = {
    "crore": 10_000_000,
    "crores": 10_000_000,
    "cr": 10_000_000,
    "lakh": 100_000,
    "lakhs": 100_000,
    "lac": 100_000,
    "lacs": 100_000,
    "thousand": 1_000,
    "k": 1_000,
}

_VERNACULAR_AMOUNT = re.compile(
    r"(\d+(?:,\d+)*(?:\.\d+)?)\s*(" + "|".join(sorted(_MAGNITUDES, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_PLAIN_AMOUNT = re.compile(r"\d+(?:,\d+)*(?:\.\d+)?")

_DATE_PATTERNS = (
    re.compile(r"\b(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})\b"),
    re.compile(r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})\b"),
)


def is_usable_api_key(api_key: Optional[str]) -> bool:
    """True for a non-empty key that is not a known placeholder."""
    if not api_key or not api_key.strip():
        return False
    return api_key.strip().lower() not in PLACEHOLDER_API_KEYS


# =============================================================================
# IMAGE DATA URIs
# =============================================================================

def parse_data_uri(
    image_data_uri: str,
    provider: Optional[str] = None,
) -> tuple[str, str]:
    """
    Split a data URI into (mime_type, base64_payload).

    Raises:
        InvalidImageDataError: if there is no payload after the comma
    """
    if not image_data_uri or "," not in image_data_uri:
        raise InvalidImageDataError("Invalid image data: no base64 data found", provider)

    header, payload = image_data_uri.split(",", 1)
    payload = payload.strip()
    if not payload:
        raise InvalidImageDataError("Invalid image data: no base64 data found", provider)

    match = _DATA_URI_MIME.match(header + ",")
    mime_type = match.group(1).strip().lower() if match else DEFAULT_IMAGE_MIME_TYPE
    return mime_type, payload


# =============================================================================
# MODEL OUTPUT
# =============================================================================

def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced top-level {...} span in free text.

    Braces inside JSON strings are ignored. Returns None when no
    opening brace has a matching close.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def parse_structured_output(text: str, provider: Optional[str] = None) -> dict[str, Any]:
    """
    Pull the JSON object out of a model's free-text response.

    Raises:
        NoStructuredOutputError: no {...} span in the response
        MalformedOutputError: the span is not valid JSON
    """
    span = extract_json_object(text or "")
    if span is None:
        raise NoStructuredOutputError("No JSON found in response", provider)
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Model returned invalid JSON: {e.msg}", provider) from e
    if not isinstance(parsed, dict):
        raise MalformedOutputError("Model returned JSON that is not an object", provider)
    return parsed


# =============================================================================
# AMOUNTS AND DATES
# =============================================================================

def parse_amount(text: str) -> float:
    """First number in the text, thousands separators removed; 0 if none."""
    match = _PLAIN_AMOUNT.search(text or "")
    if match:
        return float(match.group(0).replace(",", ""))
    return 0.0


def parse_vernacular_amount(text: str) -> Optional[float]:
    """
    Convert amounts written with Indian magnitude words.

    "2.5 lakh" -> 250000, "1 crore" -> 10000000, "50 thousand" -> 50000.
    Plain numbers are returned as-is; None if the text has no number.
    """
    if not text:
        return None
    match = _VERNACULAR_AMOUNT.search(text)
    if match:
        value = float(match.group(1).replace(",", ""))
        return round(value * _MAGNITUDES[match.group(2).lower()], 2)
    plain = _PLAIN_AMOUNT.search(text)
    if plain:
        return float(plain.group(0).replace(",", ""))
    return None


def parse_date(text: str) -> Optional[str]:
    """First date-looking span (d/m/y or y-m-d) in the text."""
    for pattern in _DATE_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return match.group(0)
    return None


def to_calendar_date(text: Optional[str]) -> Optional[date]:
    """
    Interpret a model-supplied date string.

    ISO dates are preferred; day-first formats are tried next since
    receipts here are Indian. Returns None if nothing parses.
    """
    span = parse_date(text or "")
    if span is None:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%d-%m-%y"):
        try:
            return datetime.strptime(span, fmt).date()
        except ValueError:
            continue
    return None
