"""Slug generation and key normalization for routes and link lookup"""

import re
import unicodedata


FALLBACK_SLUG = "note"

_DISALLOWED_RE = re.compile(r'[^A-Za-z0-9\s_-]')
_SEPARATOR_RE  = re.compile(r'[\s_-]+')


def strip_diacritics(text: str) -> str:
    """Decompose text (NFD) and drop combining marks: 'Héléna' -> 'Helena'."""
    decomposed = unicodedata.normalize('NFD', text)
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def slugify(text: str, fallback: str = FALLBACK_SLUG) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug.

    Characters outside ASCII letters, digits and separators are removed; runs of
    whitespace, '-' and '_' collapse to a single hyphen. An empty result yields fallback.
    """
    text = _DISALLOWED_RE.sub('', strip_diacritics(text))
    text = _SEPARATOR_RE.sub('-', text).strip('-').lower()
    return text or fallback


def normalize_property_key(key: str) -> str:
    """Normalize a metadata key: trimmed, diacritics stripped, lowercased."""
    return strip_diacritics(str(key).strip()).lower()


def normalize_key(value: str) -> str:
    """Normalize a lookup key: forward slashes, no outer slashes, no diacritics, lowercase."""
    value = value.strip().replace('\\', '/').strip('/')
    return strip_diacritics(value).lower()
