"""
Single-tag lookup shared by the tokenizer, the classifier and the
fingerprint.
"""
import html
import re
from typing import Dict, Optional, Pattern

_tag_patterns: Dict[str, Pattern] = {}


def _tag_pattern(tag: str) -> Pattern:
    pattern = _tag_patterns.get(tag)
    if pattern is None:
        # Value stops at the next tag (closing or not) or at the line end
        pattern = re.compile(rf'<{tag}>([^<\r\n]*)', re.IGNORECASE)
        _tag_patterns[tag] = pattern
    return pattern


def find_tag(text: str, tag: str) -> Optional[str]:
    """
    Returns the trimmed, unescaped value of the first ``<tag>`` in text,
    or None when the tag is absent or empty. Works for SGML leaf tags
    (``<MEMO>abc``) and XML ones (``<MEMO>abc</MEMO>``).
    """
    if not text:
        return None
    match = _tag_pattern(tag).search(text)
    if not match:
        return None
    value = html.unescape(match.group(1)).strip()
    return value or None
