"""
Highlight cleanup.

The engine returns fragments like "... <em>match</em> ..." with page markers,
editorial digits and transcription artifacts mixed in. Each fragment becomes a
plain-text (pre, match, post) triple. Cleaning order matters: tags go before
the digit rules (a tag can hide a digit boundary) and whitespace goes last.
"""

import re

from turath_search.models import Highlight

DIGITS = "0-9٠-٩۰-۹"  # Western, Arabic-Indic, Extended Arabic-Indic

TAG_RE = re.compile(r"<[^>]*>")
PAREN_WITH_DIGIT_RE = re.compile(rf"\([^()]*[{DIGITS}][^()]*\)")
LONG_NUMBER_RE = re.compile(rf"(?<!\S)[{DIGITS}]{{4,}}(?!\S)")
PERCENT_RE = re.compile("[%٪]")
WHITESPACE_RE = re.compile(r"\s+")


def clean_segment(text: str) -> str:
    """Reduce one raw segment to clean plain text."""
    text = TAG_RE.sub("", text)
    text = PAREN_WITH_DIGIT_RE.sub("", text)
    text = LONG_NUMBER_RE.sub("", text)
    text = PERCENT_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def process_highlight(fragment: str, pre_tag: str = "<em>", post_tag: str = "</em>") -> Highlight:
    """
    Split a highlight fragment around its match and clean each part.

    A fragment without a complete marker pair comes back untouched as `pre`.
    """
    start = fragment.find(pre_tag)
    end = fragment.find(post_tag, start + len(pre_tag)) if start != -1 else -1
    if start == -1 or end == -1:
        return Highlight(pre=fragment, match="", post="")

    return Highlight(
        pre=clean_segment(fragment[:start]),
        match=clean_segment(fragment[start + len(pre_tag):end]),
        post=clean_segment(fragment[end + len(post_tag):]),
    )
