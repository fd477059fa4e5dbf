"""Helpers for the editor's JSON document format (``{"type": "doc", "content": [...]}``)."""
from typing import Any, Dict, List

# Nodes that end a line of text
BLOCK_TYPES = {"paragraph", "heading", "listItem", "blockquote", "codeBlock"}


def to_plain_text(doc: Dict[str, Any]) -> str:
    """Flatten a document to text, one block per line, blank blocks dropped."""
    lines: List[str] = []
    buf: List[str] = []
    _walk(doc or {}, lines, buf)
    if buf:
        lines.append("".join(buf))
    return "\n".join(line for line in (ln.strip() for ln in lines) if line)


def _walk(node: Dict[str, Any], lines: List[str], buf: List[str]) -> None:
    node_type = node.get("type")
    if node_type == "text":
        buf.append(node.get("text", ""))
        return
    if node_type == "hardBreak":
        buf.append("\n")
        return

    for child in node.get("content") or []:
        if isinstance(child, dict):
            _walk(child, lines, buf)

    if node_type in BLOCK_TYPES and buf:
        lines.append("".join(buf))
        buf.clear()
