"""General parsing utilities for recipe extraction."""

import html
import re
from typing import List, Optional

_ISO_DURATION_RE = re.compile(
    r"P(?:(\d+)D)?T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?",
    flags=re.I,
)
_LIST_MARKER_RE = re.compile(r"^\d+[\.\):\-]\s+")
_BULLET_RE = re.compile(r"^[•-…☐-☒✓-✔▪-▫○-●◦]+\s*")
_DASH_MARKER_RE = re.compile(r"^[\-\*\+]\s+")
_TAG_RE = re.compile(r"<[^>]+>")


def clean_text(text: Optional[str]) -> str:
    """Normalize whitespace and decode HTML entities."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", html.unescape(str(text))).strip()


def strip_html(text: Optional[str]) -> str:
    """Drop markup that sites leave inside structured-data strings."""
    if not text:
        return ""
    return clean_text(_TAG_RE.sub(" ", html.unescape(str(text))))


def clean_list_item_text(text: Optional[str]) -> str:
    """Strip list numbering and bullets while keeping leading quantities ("1 onion")."""
    cleaned = clean_text(text)
    cleaned = _LIST_MARKER_RE.sub("", cleaned)
    cleaned = _BULLET_RE.sub("", cleaned)
    cleaned = _DASH_MARKER_RE.sub("", cleaned)
    return cleaned.strip()


def parse_iso8601_duration(duration) -> Optional[int]:
    """Parse an ISO-8601 duration (PT1H30M, PT45M, PT2H) into whole minutes.

    Also tolerates a day component (P0DT1H) and seconds (rounded to the
    nearest minute). Anything else returns None.
    """
    if not isinstance(duration, str):
        return None
    match = _ISO_DURATION_RE.fullmatch(duration.strip())
    if not match or not any(match.groups()):
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = float(match.group(4) or 0)
    return days * 24 * 60 + hours * 60 + minutes + (1 if seconds >= 30 else 0)


def parse_duration_from_text(text: Optional[str]) -> Optional[int]:
    """Parse human durations such as "1 hour 30 mins" or "45 min"."""
    if not text:
        return None
    lowered = text.lower()
    total = 0
    hour_match = re.search(r"(\d+)\s*(?:hours?|hrs?|h)\b", lowered)
    if hour_match:
        total += int(hour_match.group(1)) * 60
    minute_match = re.search(r"(\d+)\s*(?:minutes?|mins?|m)\b", lowered)
    if minute_match:
        total += int(minute_match.group(1))
    return total or None


def parse_minutes(value) -> Optional[int]:
    """Parse a minutes value from ISO durations, human text or plain numbers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        iso_minutes = parse_iso8601_duration(value)
        if iso_minutes is not None:
            return iso_minutes
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        return parse_duration_from_text(value)
    return None


def parse_yield_count(value) -> Optional[int]:
    """Return the first integer in a yield such as "4 servings".

    A range collapses to its lower bound: "Serves 4-6" gives 4.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, (list, tuple)):
        for item in value:
            parsed = parse_yield_count(item)
            if parsed is not None:
                return parsed
        return None
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if match:
            return int(match.group())
    return None


def parse_servings_from_text(text: Optional[str]) -> Optional[int]:
    """Extract servings from descriptive text ("Serves 4", "Yield: 6", "Makes 8")."""
    if not text:
        return None
    patterns = [
        r"serves?\s*:?\s*(\d+)",
        r"servings?\s*:?\s*(\d+)",
        r"yields?\s*:?\s*(\d+)",
        r"makes?\s*:?\s*(\d+)",
        r"(\d+)\s*servings?",
    ]
    lowered = text.lower()
    for pat in patterns:
        m = re.search(pat, lowered)
        if m:
            num = int(m.group(1))
            if 0 < num < 100:
                return num
    return None


def extract_image(value) -> Optional[str]:
    """Extract an image URL from the schema.org image shapes."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return url if isinstance(url, str) and url else None
    if isinstance(value, list):
        for item in value:
            found = extract_image(item)
            if found:
                return found
    return None


def coerce_string_list(value) -> List[str]:
    """Flatten a category/cuisine/keywords value into a de-duplicated list."""
    raw: List[str] = []
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str):
            raw = [name]
    elif isinstance(value, (list, tuple)):
        for item in value:
            raw.extend(coerce_string_list(item))

    seen = set()
    out: List[str] = []
    for item in raw:
        cleaned = clean_text(item)
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            out.append(cleaned)
    return out
