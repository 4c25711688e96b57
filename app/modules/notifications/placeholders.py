"""Placeholder checking and substitution for template dispatch.

A placeholder value is one of ``str``, a number (``int``/``float``) or ``bool``
as decoded from the request JSON. ``validate_placeholders`` checks a value map
against a template's declared tags; ``resolve`` substitutes it into text.
"""
import re
from typing import Mapping, Union
from app.core.errors import ValidationError
from app.modules.templates.models import TagDatatype

PlaceholderValue = Union[str, int, float, bool]

def value_kind(value: object) -> TagDatatype | None:
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return TagDatatype.BOOLEAN
    if isinstance(value, (int, float)):
        return TagDatatype.NUMBER
    if isinstance(value, str):
        return TagDatatype.STRING
    return None

def to_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

def _is_blank(value: object) -> bool:
    return value is None or not to_text(value).strip()

def validate_placeholders(tags: Mapping[str, TagDatatype],
                          placeholders: Mapping[str, PlaceholderValue | None] | None) -> None:
    """Raise ValidationError unless ``placeholders`` covers exactly ``tags`` with matching kinds.

    Missing and mistyped tags are reported together in one error; unexpected
    keys are checked afterwards and reported on their own.
    """
    placeholders = placeholders or {}
    missing: list[str] = []
    type_errors: list[str] = []
    for name in sorted(tags):
        value = placeholders.get(name)
        if _is_blank(value):
            missing.append(name)
        elif value_kind(value) is not tags[name]:
            type_errors.append(name)

    if missing or type_errors:
        parts = []
        if missing:
            parts.append(f"Missing required tags: {missing}")
        for name in type_errors:
            parts.append(f"Tag '{name}' must be a {tags[name].value}.")
        raise ValidationError("; ".join(parts), details={"missing": missing, "type_errors": type_errors})

    unexpected = [key for key in placeholders if key not in tags]
    if unexpected:
        raise ValidationError(f"Unexpected extra tags provided: {unexpected}", details={"unexpected": unexpected})

def resolve(text: str, placeholders: Mapping[str, PlaceholderValue | None] | None) -> str:
    """Replace ``{{name}}`` (inner whitespace allowed) for every supplied placeholder.

    Tags without a supplied value are left as they are.
    """
    if not text or not placeholders:
        return text
    for name, value in placeholders.items():
        replacement = to_text(value)
        pattern = re.compile(r"\{\{\s*" + re.escape(name) + r"\s*\}\}")
        text = pattern.sub(lambda _m: replacement, text)
    return text
