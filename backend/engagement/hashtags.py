"""Hashtag extraction for short-form posts."""
import re

HASHTAG_RE = re.compile(r'#([A-Za-z0-9_]+)')


def extract_hashtags(content: str) -> list[str]:
    """
    Lower-cased, de-duplicated tags in first-seen order.

    >>> extract_hashtags("Shipping #Django today #django #py3")
    ['django', 'py3']
    """
    seen = []
    for tag in HASHTAG_RE.findall(content or ''):
        tag = tag.lower()
        if tag not in seen:
            seen.append(tag)
    return seen
