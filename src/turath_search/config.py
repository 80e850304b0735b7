"""
Search configuration.

All constants the pipeline needs (result windows, highlight shape, field names,
the proclitic set) live in one validated model. It is built once at startup,
usually from the environment, and passed explicitly to each component.
"""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator

# One-letter proclitics: wa, fa, bi, li, ka
DEFAULT_CLITICS: Tuple[str, ...] = ("و", "ف", "ب", "ل", "ك")


class SearchSettings(BaseModel):
    """Startup configuration for the engine client and query construction."""

    # Engine connection
    engine_url: str = "http://localhost:9200"
    index: str = "turath"
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = Field(30.0, gt=0)

    # Result windows
    max_result_window: int = Field(5000, gt=0, description="Deepest from+size served interactively")
    export_max_results: int = Field(2000, gt=0, description="Size of a bulk export request")
    default_page_size: int = Field(250, gt=0)

    # Highlighting
    highlight_type: str = "unified"
    fragment_count: int = Field(10, gt=0)
    fragment_size: int = Field(150, gt=0)
    pre_tag: str = "<em>"
    post_tag: str = "</em>"

    # Index fields
    clitic_field: str = Field("page_content", description="Content indexed with proclitic variants")
    exact_field: str = Field("page_content.exact", description="Content indexed verbatim (normalized only)")
    id_field: str = "text_id"
    sort_field: str = "uri"

    clitics: Tuple[str, ...] = DEFAULT_CLITICS

    @model_validator(mode="after")
    def _check_consistency(self) -> "SearchSettings":
        if self.pre_tag == self.post_tag:
            raise ValueError("highlight pre_tag and post_tag must differ")
        if self.clitic_field == self.exact_field:
            raise ValueError("clitic_field and exact_field must be different fields")
        for clitic in self.clitics:
            if len(clitic) != 1:
                raise ValueError(f"clitics must be single letters, got {clitic!r}")
        return self

    @classmethod
    def from_env(cls, environ=None) -> "SearchSettings":
        """
        Build settings from environment variables.

        Unset variables keep their defaults. Call load_dotenv() first if a
        .env file should be honoured.
        """
        env = os.environ if environ is None else environ
        mapping = {
            "engine_url": "OPENSEARCH_URL",
            "index": "OPENSEARCH_INDEX",
            "username": "OPENSEARCH_USER",
            "password": "OPENSEARCH_PASSWORD",
            "timeout": "OPENSEARCH_TIMEOUT",
            "max_result_window": "TURATH_MAX_RESULT_WINDOW",
            "export_max_results": "TURATH_EXPORT_MAX_RESULTS",
            "default_page_size": "TURATH_PAGE_SIZE",
            "highlight_type": "TURATH_HIGHLIGHT_TYPE",
            "fragment_count": "TURATH_FRAGMENT_COUNT",
            "fragment_size": "TURATH_FRAGMENT_SIZE",
            "clitic_field": "TURATH_CLITIC_FIELD",
            "exact_field": "TURATH_EXACT_FIELD",
        }
        values = {}
        for name, var in mapping.items():
            raw = env.get(var)
            if raw not in (None, ""):
                values[name] = raw
        clitics = env.get("TURATH_CLITICS")
        if clitics:
            values["clitics"] = tuple(c for c in clitics if not c.isspace() and c != ",")
        return cls(**values)
