"""
Index definition for the page index.

The analyzers mirror turath_search.normalize so that wildcard terms (which the
engine does not analyze) line up with indexed tokens. The clitic-expanded
field additionally emits each token with one leading proclitic removed, at
the same position, so a phrase for "التصوف" also matches "بالتصوف".
"""

from typing import Any, Dict

from turath_search.config import SearchSettings

# Tashkeel and tatweel are dropped; hamza carriers and yaa variants folded.
STRIP_PATTERN = "[\\u064B-\\u0652\\u0640]"
LETTER_MAPPINGS = [
    "\\u0623=>\\u0627",  # أ
    "\\u0625=>\\u0627",  # إ
    "\\u0622=>\\u0627",  # آ
    "\\u0624=>\\u0648",  # ؤ
    "\\u0626=>\\u064A",  # ئ
    "\\u0649=>\\u064A",  # ى
    "\\u06CC=>\\u064A",  # Farsi yeh
]

EXACT_ANALYZER = "turath_exact"
CLITIC_ANALYZER = "turath_clitic"


def proclitic_pattern(settings: SearchSettings) -> str:
    """Capture the stem after one proclitic, leaving at least two letters."""
    return f"^[{''.join(settings.clitics)}](.{{2,}})$"


def analysis_settings(settings: SearchSettings) -> Dict[str, Any]:
    char_filters = ["turath_strip_marks", "turath_fold_letters"]
    return {
        "char_filter": {
            "turath_strip_marks": {
                "type": "pattern_replace",
                "pattern": STRIP_PATTERN,
                "replacement": "",
            },
            "turath_fold_letters": {
                "type": "mapping",
                "mappings": LETTER_MAPPINGS,
            },
        },
        "filter": {
            "turath_proclitics": {
                "type": "pattern_capture",
                "preserve_original": True,
                "patterns": [proclitic_pattern(settings)],
            },
        },
        "analyzer": {
            EXACT_ANALYZER: {
                "type": "custom",
                "tokenizer": "standard",
                "char_filter": char_filters,
                "filter": ["lowercase"],
            },
            CLITIC_ANALYZER: {
                "type": "custom",
                "tokenizer": "standard",
                "char_filter": char_filters,
                "filter": ["lowercase", "turath_proclitics"],
            },
        },
    }


def build_index_body(settings: SearchSettings) -> Dict[str, Any]:
    """
    Settings and mappings for the page index.

    The exact field is a sub-field of the clitic field when its name is
    "<clitic_field>.<name>", otherwise a stored sibling filled via copy_to.
    Queries are analyzed with the exact analyzer on both fields.
    """
    content_field: Dict[str, Any] = {
        "type": "text",
        "analyzer": CLITIC_ANALYZER,
        "search_analyzer": EXACT_ANALYZER,
        "term_vector": "with_positions_offsets",
    }
    exact_field = {
        "type": "text",
        "analyzer": EXACT_ANALYZER,
        "term_vector": "with_positions_offsets",
    }
    properties: Dict[str, Any] = {
        settings.id_field: {"type": "integer"},
        "page_id": {"type": "integer"},
        "page_num": {"type": "integer"},
        "vol": {"type": "keyword"},
        "collection": {"type": "keyword"},
        settings.sort_field: {"type": "keyword"},
        settings.clitic_field: content_field,
    }

    prefix = settings.clitic_field + "."
    if settings.exact_field.startswith(prefix):
        content_field["fields"] = {settings.exact_field[len(prefix):]: exact_field}
    else:
        content_field["copy_to"] = settings.exact_field
        properties[settings.exact_field] = dict(exact_field, store=True)

    return {
        "settings": {
            "index": {"max_result_window": max(settings.max_result_window, settings.export_max_results)},
            "analysis": analysis_settings(settings),
        },
        "mappings": {"properties": properties},
    }
