"""Vault path helpers shared by the resolver, routing, and detectors"""

import re


_EXTENSION_RE = re.compile(r'\.[^/.]+$')


def normalize_path(path: str) -> str:
    """Use forward slashes and drop leading/trailing slashes."""
    return path.replace('\\', '/').strip().strip('/')


def basename(path: str) -> str:
    return path.rsplit('/', 1)[-1]


def strip_extension(path: str) -> str:
    """Remove the final extension of the last path segment, if any."""
    return _EXTENSION_RE.sub('', path)


def split_segments(path: str) -> list[str]:
    """Return the non-empty segments of a normalized path."""
    return [s for s in normalize_path(path).split('/') if s]


def join_route(*parts: str) -> str:
    """Join route parts into an absolute route, collapsing duplicate separators."""
    route = '/'.join(p.strip('/') for p in parts if p and p.strip('/'))
    return '/' + re.sub(r'/{2,}', '/', route)
