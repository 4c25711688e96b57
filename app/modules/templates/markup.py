"""Template body normalization.

Bodies are stored as HTML. Plain text (no angle brackets) is wrapped in a
paragraph with line breaks kept; markup is cleaned against a relaxed
allow-list of formatting, list, table, link and image elements.
"""
import nh3
from app.core.errors import ValidationError

ALLOWED_TAGS = {
    "a", "b", "blockquote", "br", "caption", "cite", "code", "col", "colgroup", "dd", "div", "dl", "dt",
    "em", "h1", "h2", "h3", "h4", "h5", "h6", "i", "img", "li", "ol", "p", "pre", "q", "small", "span",
    "strike", "strong", "sub", "sup", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "u", "ul",
}

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
    "blockquote": {"cite"},
    "col": {"span", "width"},
    "colgroup": {"span", "width"},
    "img": {"align", "alt", "height", "src", "title", "width"},
    "ol": {"start", "type"},
    "q": {"cite"},
    "table": {"summary", "width"},
    "td": {"abbr", "axis", "colspan", "rowspan", "width"},
    "th": {"abbr", "axis", "colspan", "rowspan", "scope", "width"},
    "ul": {"type"},
}

URL_SCHEMES = {"http", "https", "mailto", "ftp"}

def is_plain_text(body: str) -> bool:
    return "<" not in body and ">" not in body

def process_body(body: str) -> str:
    """Return the HTML to store for ``body``; ``{{tag}}`` tokens pass through unchanged."""
    if body is None or not body.strip():
        raise ValidationError("Body cannot be empty")
    if is_plain_text(body):
        return "<p>" + body.replace("\n", "<br>") + "</p>"
    cleaned = nh3.clean(body, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, url_schemes=URL_SCHEMES)
    if not cleaned.strip():
        raise ValidationError("Body has no content left after removing disallowed markup.")
    return cleaned
