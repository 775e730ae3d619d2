"""Content hashes for the manifest and stable note identities"""

import hashlib


def sha256(content: str) -> str:
    """Hex SHA-256 of content (64 chars); the manifest compares these between publishes."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def short_id(*parts: str, length: int = 16) -> str:
    """Stable identifier from ':'-joined parts, e.g. short_id(folder_id, vault_path)."""
    return sha256(":".join(parts))[:length]
