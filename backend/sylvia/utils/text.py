"""Small text helpers shared by the catalog, feed and profile code."""
import re
from typing import Optional

PLACEHOLDER_COVER_RE = re.compile(r"image[\s_-]?not[\s_-]?available|no[\s_-]?cover|placeholder", re.IGNORECASE)

AVATAR_PUBLIC_MARKER = "/storage/v1/object/public/avatars/"
AVATAR_RAW_MARKER = "/storage/v1/object/avatars/"

SYNOPSIS_FALLBACK = "Synopsis unavailable."


def is_valid_cover_url(url: Optional[str]) -> bool:
    """Return False for missing covers and for catalog "no cover" placeholders."""
    if not url:
        return False
    return PLACEHOLDER_COVER_RE.search(url) is None


def normalize_avatar_url(url: Optional[str]) -> Optional[str]:
    """Rewrite a storage object URL to its public form."""
    if not url:
        return None
    trimmed = url.strip()
    if not trimmed:
        return None
    if AVATAR_PUBLIC_MARKER in trimmed:
        return trimmed
    if AVATAR_RAW_MARKER in trimmed:
        return trimmed.replace(AVATAR_RAW_MARKER, AVATAR_PUBLIC_MARKER)
    return trimmed


def synopsis_text(text: Optional[str], max_length: int = 180) -> str:
    if not text:
        return SYNOPSIS_FALLBACK
    cleaned = re.sub(r"\s+", " ", text).strip()
    if not cleaned:
        return SYNOPSIS_FALLBACK
    if len(cleaned) <= max_length:
        return cleaned
    return f"{cleaned[:max_length].strip()}..."


def format_username(username: Optional[str]) -> str:
    if not username:
        return ""
    trimmed = username.strip()
    if not trimmed:
        return ""
    return trimmed[0].upper() + trimmed[1:]
