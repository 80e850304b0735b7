"""
Arabic query normalization.

Rules, applied in order:
1. strip the eight tashkeel marks (U+064B..U+0652)
2. hamza carriers: أ إ آ -> ا, ؤ -> و, ئ -> ى
3. alif maqsura and Farsi yeh -> ي
4. strip tatweel

Step 3 runs after step 2 so ئ ends up as ي. The wildcard marker is never
touched: wildcard queries are normalized segment by segment.
"""

import re

WILDCARD = "*"

DIACRITICS_RE = re.compile("[\u064B-\u0652]")
TATWEEL = "\u0640"

HAMZA_MAP = str.maketrans({
    "أ": "ا",
    "إ": "ا",
    "آ": "ا",
    "ؤ": "و",
    "ئ": "ى",
})

YAA_MAP = str.maketrans({
    "ى": "ي",
    "\u06CC": "ي",  # Farsi yeh
})


def _normalize_segment(text: str) -> str:
    text = DIACRITICS_RE.sub("", text)
    text = text.translate(HAMZA_MAP)
    text = text.translate(YAA_MAP)
    return text.replace(TATWEEL, "")


def normalize(text: str) -> str:
    """Canonicalize Arabic text for matching, preserving wildcard markers."""
    if not text:
        return ""
    if WILDCARD not in text:
        return _normalize_segment(text)
    return WILDCARD.join(_normalize_segment(part) for part in text.split(WILDCARD))
