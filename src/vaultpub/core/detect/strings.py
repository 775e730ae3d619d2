"""Walk nested frontmatter and yield every string value with its property path"""

from dataclasses import dataclass
from typing import Any, Iterator

from vaultpub.core.frontmatter import MAX_DEPTH


@dataclass(frozen=True)
class FrontmatterString:
    path:  str      # e.g. 'cover', 'links[0]', 'relation.parents[1]'
    value: str


def iter_strings(value: Any, path: str = "", depth: int = 0) -> Iterator[FrontmatterString]:
    """Containers nested deeper than MAX_DEPTH are not visited."""
    if isinstance(value, str):
        if path:
            yield FrontmatterString(path, value)
    elif depth >= MAX_DEPTH:
        return
    elif isinstance(value, dict):
        for key, child in value.items():
            yield from iter_strings(child, f"{path}.{key}" if path else str(key), depth + 1)
    elif isinstance(value, (list, tuple)):
        for i, child in enumerate(value):
            yield from iter_strings(child, f"{path}[{i}]", depth + 1)
