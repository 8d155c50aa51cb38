"""
Notion block formatting.

Turns raw Notion block objects into small dictionaries and renders a page's
blocks as readable markdown-like text.
"""
from typing import Dict, Any, List, Optional

TEXT_BLOCK_TYPES = (
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "code",
    "quote",
    "callout",
)


def plain_text(rich_text: Optional[List[Dict[str, Any]]]) -> str:
    """Join the plain_text of a rich text array."""
    if not rich_text:
        return ""
    return "".join(t.get("plain_text", "") for t in rich_text)


def format_block(block: Dict[str, Any]) -> Dict[str, Any]:
    """
    Format a raw Notion block into a readable structure.

    Returns a dict with id, type and has_children plus type-specific fields:
    text for text blocks, checked for to-dos, language for code, icon for
    callouts, url and caption for images.
    """
    block_type = block.get("type")
    formatted: Dict[str, Any] = {
        "id": block.get("id"),
        "type": block_type,
        "has_children": block.get("has_children", False),
    }
    body = block.get(block_type) or {}

    if block_type in TEXT_BLOCK_TYPES:
        formatted["text"] = plain_text(body.get("rich_text"))
        if block_type == "to_do":
            formatted["checked"] = bool(body.get("checked"))
        elif block_type == "code":
            formatted["language"] = body.get("language") or ""
        elif block_type == "callout":
            formatted["icon"] = body.get("icon")
    elif block_type == "image":
        if body.get("type") == "external":
            formatted["url"] = (body.get("external") or {}).get("url")
        else:
            formatted["url"] = (body.get("file") or {}).get("url")
        formatted["caption"] = plain_text(body.get("caption"))
    else:
        formatted["text"] = f"[{block_type} block]"

    return formatted


def render_block(formatted: Dict[str, Any]) -> str:
    """Render one formatted block as a line of text."""
    block_type = formatted.get("type")
    text = formatted.get("text", "")

    if block_type == "heading_1":
        return f"# {text}\n"
    if block_type == "heading_2":
        return f"## {text}\n"
    if block_type == "heading_3":
        return f"### {text}\n"
    if block_type == "bulleted_list_item":
        return f"- {text}"
    if block_type == "numbered_list_item":
        return text
    if block_type == "to_do":
        mark = "x" if formatted.get("checked") else " "
        return f"- [{mark}] {text}"
    if block_type == "code":
        return f"```{formatted.get('language', '')}\n{text}\n```\n"
    if block_type == "quote":
        return f"> {text}\n"
    if block_type == "callout":
        return f"**{text}**\n"
    if block_type == "image":
        return f"![{formatted.get('caption', '')}]({formatted.get('url')})\n"
    return f"{text}\n" if text else ""


def render_content(formatted_blocks: List[Dict[str, Any]]) -> str:
    """Render a page's formatted blocks as plain text."""
    if not formatted_blocks:
        return ""
    return "\n".join(render_block(b) for b in formatted_blocks)


def paragraph_blocks(content: str) -> List[Dict[str, Any]]:
    """Split content on blank lines into Notion paragraph blocks."""
    paragraphs = [p for p in content.split("\n\n") if p.strip()]
    return [
        {
            "object": "block",
            "type": "paragraph",
            "paragraph": {"rich_text": rich_text(p)},
        }
        for p in paragraphs
    ]


# Notion rejects text objects longer than this
RICH_TEXT_LIMIT = 2000


def rich_text(content: str) -> List[Dict[str, Any]]:
    """Build a rich text array, chunked to the Notion text length limit."""
    if not content:
        return []
    return [
        {"type": "text", "text": {"content": content[i:i + RICH_TEXT_LIMIT]}}
        for i in range(0, len(content), RICH_TEXT_LIMIT)
    ]
