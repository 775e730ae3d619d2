"""Inline expression rendering: `= this.prop` and `= join(this.prop, ", ")` to literal text"""

import logging
import re
from dataclasses import dataclass

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document, Frontmatter
from vaultpub.core.values import MISSING, Value, as_list, lookup, render


logger = logging.getLogger(__name__)

INLINE_CODE_RE = re.compile(r'`([^`]*?)`')
JOIN_RE = re.compile(r'''^join\(\s*this\.([^,]+?)\s*,\s*["']([^"']*)["']\s*\)$''')
THIS_PREFIX = "this."


@dataclass(frozen=True)
class InlineExpression:
    raw:           str
    expression:    str
    property_path: str
    rendered:      str


def evaluate(expression: str, frontmatter: Frontmatter) -> str:
    """Evaluate one expression against the note's nested frontmatter and render it."""
    expression = expression.strip()

    if m := JOIN_RE.match(expression):
        property_path, separator = m.group(1).strip(), m.group(2)
        items = as_list(lookup(frontmatter.nested, property_path))
        return separator.join(render(item) for item in items)

    if expression.startswith(THIS_PREFIX):
        property_path = expression[len(THIS_PREFIX):].strip()
        value: Value = lookup(frontmatter.nested, property_path) if property_path else MISSING
        return render(value)

    logger.debug("Unsupported inline expression", extra={"expression": expression})
    return render(MISSING)


def render_inline(content: str, frontmatter: Frontmatter) -> tuple[str, list[InlineExpression]]:
    """Replace every `= expr` inline code span; other inline code is left untouched."""
    found: list[InlineExpression] = []

    def _replace(m: re.Match) -> str:
        code = m.group(1).strip()
        if not code.startswith('='):
            return m.group(0)
        expression = code[1:].strip()
        rendered = evaluate(expression, frontmatter)
        path = m2.group(1).strip() if (m2 := re.search(r'this\.([^,)]+)', expression)) else ""
        found.append(InlineExpression(m.group(0), expression, path, rendered))
        return rendered

    return INLINE_CODE_RE.sub(_replace, content), found


def render_inline_expressions(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    results = []
    for doc in docs:
        ctx.checkpoint()
        content, expressions = render_inline(doc.content, doc.frontmatter)
        if expressions:
            logger.debug("Rendered inline expressions", extra={"note_id": doc.note_id, "count": len(expressions)})
            doc = doc.model_copy(update={"content": content})
        results.append(doc)
    return results
