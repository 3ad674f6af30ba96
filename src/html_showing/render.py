"""
Preview page rendering.

generate_preview_html() maps stored content and its type to a full HTML
document:

- html: the content itself, served as-is
- css: a demo page of common elements styled by the content
- javascript: the content in a <script> block with an on-page console
- json / xml: pretty-printed, highlighted source plus structure counts
- svg: the image inline, its source behind a toggle, shape counts
- anything else: escaped plain text with size counts

Templates autoescape, so raw content shown as text is always escaped;
content embedded as style or script is marked safe on purpose.
"""
import json
import re
from pathlib import Path
from typing import Callable

from fastapi.templating import Jinja2Templates
from markupsafe import Markup, escape

from .models import FileType, normalize_file_type

TEMPLATE_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def _format_count(value: int) -> str:
    """Format a count with thousands separators."""
    return f"{value:,}"


def _format_bytes(size: int) -> str:
    """Format a byte size to a human readable string."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    else:
        return f"{size / (1024 * 1024):.1f} MB"


templates.env.filters["format_count"] = _format_count
templates.env.filters["format_bytes"] = _format_bytes


# =============================================================================
# HIGHLIGHTING
# =============================================================================

JSON_TOKEN = re.compile(
    r'(?P<key>"(?:\\.|[^"\\])*")(?=\s*:)'
    r'|(?P<string>"(?:\\.|[^"\\])*")'
    r"|(?P<boolean>\b(?:true|false)\b)"
    r"|(?P<null>\bnull\b)"
    r"|(?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)"
)

XML_TOKEN = re.compile(
    r"<!--.*?-->|<!\[CDATA\[.*?\]\]>|<[^<>]*>|[^<]+|<",
    re.DOTALL,
)
XML_TAG = re.compile(r"^(</?|<\?|<!)([^\s/>?]*)(.*?)(/?\??>)$", re.DOTALL)
XML_ATTR = re.compile(r"""([\w:.-]+)(\s*=\s*)("[^"]*"|'[^']*')""")


def _span(css_class: str, text: str) -> Markup:
    return Markup('<span class="tok-{}">{}</span>').format(css_class, text)


def highlight_json(text: str) -> Markup:
    """Wrap JSON tokens in <span class="tok-..."> elements, escaping the rest."""
    out = []
    pos = 0
    for match in JSON_TOKEN.finditer(text):
        out.append(escape(text[pos:match.start()]))
        out.append(_span(match.lastgroup, match.group()))
        pos = match.end()
    out.append(escape(text[pos:]))
    return Markup("").join(out)


def _highlight_attrs(text: str) -> Markup:
    out = []
    pos = 0
    for match in XML_ATTR.finditer(text):
        out.append(escape(text[pos:match.start()]))
        out.append(_span("attr", match.group(1)))
        out.append(escape(match.group(2)))
        out.append(_span("value", match.group(3)))
        pos = match.end()
    out.append(escape(text[pos:]))
    return Markup("").join(out)


def _highlight_tag(tag: str) -> Markup:
    match = XML_TAG.match(tag)
    if not match:
        return escape(tag)
    opening, name, attrs, closing = match.groups()
    return (
        _span("punct", opening)
        + _span("tag", name)
        + _highlight_attrs(attrs)
        + _span("punct", closing)
    )


def highlight_xml(text: str) -> Markup:
    """Highlight tags, attributes, comments and CDATA in XML-like text."""
    out = []
    for token in XML_TOKEN.findall(text):
        if token.startswith("<!--"):
            out.append(_span("comment", token))
        elif token.startswith("<![CDATA["):
            out.append(_span("cdata", token))
        elif token.startswith("<") and token.endswith(">"):
            out.append(_highlight_tag(token))
        else:
            out.append(escape(token))
    return Markup("").join(out)


# =============================================================================
# FORMATTING
# =============================================================================

def _is_open_tag(token: str) -> bool:
    return (
        token.startswith("<")
        and token.endswith(">")
        and not token.startswith(("</", "<?", "<!"))
        and not token.endswith("/>")
    )


def format_xml(content: str, indent: str = "  ") -> str:
    """Re-indent XML one tag per line.

    Tolerates malformed input: unbalanced closing tags never indent below
    zero. An element holding only text (or nothing) stays on one line.
    """
    tokens = [t.strip() for t in XML_TOKEN.findall(content)]
    tokens = [t for t in tokens if t]

    lines = []
    depth = 0
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.startswith("</"):
            depth = max(depth - 1, 0)
            lines.append(indent * depth + token)
        elif _is_open_tag(token):
            following = tokens[i + 1:i + 3]
            if following and following[0].startswith("</"):
                lines.append(indent * depth + token + following[0])
                i += 2
                continue
            if (
                len(following) == 2
                and not following[0].startswith("<")
                and following[1].startswith("</")
            ):
                lines.append(indent * depth + "".join([token, *following]))
                i += 3
                continue
            lines.append(indent * depth + token)
            depth += 1
        else:
            lines.append(indent * depth + token)
        i += 1

    return "\n".join(lines)


# =============================================================================
# STRUCTURE STATISTICS
# =============================================================================

def json_structure_stats(data) -> dict[str, int]:
    """Count the nodes of a parsed JSON value.

    Returns:
        Dict with keys, objects, arrays, strings, numbers, booleans, nulls
        and maxDepth (containers only; a bare scalar has depth 0)
    """
    counts = dict.fromkeys(
        ("keys", "objects", "arrays", "strings", "numbers", "booleans", "nulls"), 0
    )
    max_depth = 0
    stack = [(data, 1)]

    while stack:
        value, depth = stack.pop()
        if isinstance(value, dict):
            counts["objects"] += 1
            counts["keys"] += len(value)
            max_depth = max(max_depth, depth)
            stack.extend((v, depth + 1) for v in value.values())
        elif isinstance(value, list):
            counts["arrays"] += 1
            max_depth = max(max_depth, depth)
            stack.extend((v, depth + 1) for v in value)
        elif isinstance(value, bool):
            # bool before numbers: True is an int
            counts["booleans"] += 1
        elif value is None:
            counts["nulls"] += 1
        elif isinstance(value, (int, float)):
            counts["numbers"] += 1
        elif isinstance(value, str):
            counts["strings"] += 1

    counts["maxDepth"] = max_depth
    return counts


XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
XML_ELEMENT = re.compile(r"<(?![/?!])[^<>]*>")


def xml_structure_stats(content: str) -> dict[str, int]:
    """Count elements, attributes, comments and lines of XML text."""
    comments = XML_COMMENT.findall(content)
    body = XML_COMMENT.sub("", content)
    elements = XML_ELEMENT.findall(body)
    return {
        "elements": len(elements),
        "attributes": sum(len(XML_ATTR.findall(tag)) for tag in elements),
        "comments": len(comments),
        "lines": len(content.splitlines()),
    }


SVG_SHAPES = {
    "paths": "path",
    "circles": "circle",
    "rects": "rect",
    "lines": "line",
    "polygons": "polygon",
    "ellipses": "ellipse",
    "polylines": "polyline",
    "texts": "text",
    "groups": "g",
}


def svg_shape_stats(content: str) -> dict[str, int]:
    """Count SVG shape elements by tag name (case-insensitive)."""
    return {
        label: len(re.findall(rf"<{tag}(?=[\s/>])", content, re.IGNORECASE))
        for label, tag in SVG_SHAPES.items()
    }


def text_stats(content: str) -> dict[str, int]:
    """Size counts for plain text."""
    return {
        "characters": len(content),
        "bytes": len(content.encode("utf-8")),
        "lines": len(content.splitlines()),
    }


# =============================================================================
# RENDERERS
# =============================================================================

def _render(template_name: str, context: dict) -> str:
    return templates.get_template(template_name).render(context)


def _render_css(content: str, context: dict) -> str:
    return _render("preview/css.html", {**context, "stylesheet": Markup(content)})


def _render_javascript(content: str, context: dict) -> str:
    return _render(
        "preview/javascript.html",
        {**context, "script": Markup(content), "source": content},
    )


def _render_json(content: str, context: dict) -> str:
    try:
        data = json.loads(content)
    except (ValueError, RecursionError) as e:
        return _render(
            "preview/json.html",
            {**context, "source": content, "error": str(e), "stats": None, "highlighted": None},
        )

    pretty = json.dumps(data, indent=2, ensure_ascii=False)
    return _render(
        "preview/json.html",
        {
            **context,
            "source": pretty,
            "error": None,
            "stats": json_structure_stats(data),
            "highlighted": highlight_json(pretty),
        },
    )


def _render_xml(content: str, context: dict) -> str:
    formatted = format_xml(content)
    return _render(
        "preview/xml.html",
        {
            **context,
            "source": formatted,
            "stats": xml_structure_stats(content),
            "highlighted": highlight_xml(formatted),
        },
    )


def _render_svg(content: str, context: dict) -> str:
    return _render(
        "preview/svg.html",
        {
            **context,
            "image": Markup(content),
            "source": content,
            "stats": svg_shape_stats(content),
        },
    )


def _render_text(content: str, context: dict) -> str:
    return _render(
        "preview/text.html",
        {**context, "source": content, "stats": text_stats(content)},
    )


_RENDERERS: dict[FileType, Callable[[str, dict], str]] = {
    FileType.CSS: _render_css,
    FileType.JAVASCRIPT: _render_javascript,
    FileType.JSON: _render_json,
    FileType.XML: _render_xml,
    FileType.SVG: _render_svg,
    FileType.OTHER: _render_text,
}


def generate_preview_html(
    content: str,
    file_type: str | None,
    preview_id: str,
    site_title: str = "HTML Showing",
) -> str:
    """
    Render stored content as a preview document.

    Args:
        content: The uploaded text
        file_type: The record's type tag; unknown tags render as plain text
        preview_id: Identifier shown in the page chrome
        site_title: Brand name for the toolbar

    Returns:
        A complete HTML document. For html content, the content itself.
    """
    kind = FileType.parse(file_type)
    if kind is FileType.HTML:
        return content

    context = {
        "preview_id": preview_id,
        "file_type": normalize_file_type(file_type),
        "kind": kind.value,
        "site_title": site_title,
    }
    return _RENDERERS[kind](content, context)
