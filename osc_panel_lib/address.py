"""
OSC Address Resolution

Builds outgoing addresses of the form <base>/<sanitized name><suffix>,
where the suffix is whatever a widget appends to its base address
(e.g. "/x", "/r", "/0/1" for a grid cell).
"""

import re
import struct
import unicodedata

CONTROL_FALLBACK = "name"
PRESET_FALLBACK = "preset"

PRESET_PREFIX = "/preset"

_DISALLOWED = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_segment(name: str, fallback: str = CONTROL_FALLBACK) -> str:
    """
    Turn a display name into a single OSC address segment.

    Accents are folded to their base letters, spaces become underscores,
    anything outside [A-Za-z0-9_-] is dropped and the result is lower-cased.

    Example:
        sanitize_segment("Über Loud!") -> "uber_loud"
        sanitize_segment("!!!") -> "name"
    """
    folded = unicodedata.normalize("NFKD", name)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    cleaned = _DISALLOWED.sub("", folded.replace(" ", "_")).lower()
    return cleaned or fallback


def normalize_address(address: str) -> str:
    """Trim a user-entered address and make sure it starts with "/"."""
    trimmed = address.strip()
    if not trimmed:
        return trimmed
    return trimmed if trimmed.startswith("/") else "/" + trimmed


def normalize_base(address: str) -> str:
    """Base address with a leading "/" and no trailing "/" (except the bare root)."""
    base = normalize_address(address) or "/"
    if len(base) > 1:
        base = base.rstrip("/") or "/"
    return base


def resolve_address(base: str, name: str, raw: str, fallback: str = CONTROL_FALLBACK) -> str:
    """
    Inject the sanitized name between the base address and the widget suffix.

    Args:
        base: Control's configured address
        name: Control's display name
        raw: Address emitted by the widget (base, optionally followed by a suffix)

    Example:
        resolve_address("/fx1", "Delay 1", "/fx1/x") -> "/fx1/delay_1/x"
        resolve_address("/fx1", "Delay 1", "/fx1") -> "/fx1/delay_1"
    """
    base = normalize_base(base)
    head = "" if base == "/" else base
    segment = sanitize_segment(name, fallback)

    if raw.startswith(base):
        suffix = raw[len(base):]
        if base == "/" and suffix:
            suffix = "/" + suffix
        if not suffix or suffix.startswith("/"):
            return f"{head}/{segment}{suffix}"

    # Raw address does not extend the base; keep it as a trailing remainder
    remainder = raw if raw.startswith("/") else "/" + raw if raw else ""
    return f"{head}/{segment}{remainder}"


def preset_toggle_address(preset_name: str) -> str:
    """Address announcing a preset toggle, e.g. "/preset/drums"."""
    return f"{PRESET_PREFIX}/{sanitize_segment(preset_name, PRESET_FALLBACK)}"


def as_float(value: float) -> float:
    """Round a value through single precision, the width every argument is sent at."""
    return struct.unpack("f", struct.pack("f", float(value)))[0]


def bool_to_float(flag: bool) -> float:
    return 1.0 if flag else 0.0
