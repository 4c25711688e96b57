import re

# {{ token }}, non-greedy, single line
TAG_PATTERN = re.compile(r"\{\{(.+?)\}\}")

def extract_tags(subject: str | None, body: str | None) -> set[str]:
    """Distinct placeholder names found in subject and body.

    Tokens are trimmed; blank tokens are dropped. Always a full re-derivation,
    the caller replaces the stored tag set with the result.
    """
    found: set[str] = set()
    for text in (subject, body):
        if not text:
            continue
        for m in TAG_PATTERN.finditer(text):
            name = m.group(1).strip()
            if name:
                found.add(name)
    return found
