"""Shared fixtures: a small corpus, its metadata, and a fake page index."""

import fnmatch
import json

import httpx
import pytest

from turath_search.backends.opensearch import OpenSearchClient
from turath_search.config import SearchSettings
from turath_search.metadata import MetadataStore
from turath_search.models import Author, Text
from turath_search.normalize import normalize

TEXTS = {
    1: Text(id=1, title="إحياء علوم الدين", author_id=10, tags=("تصوف", "فقه")),
    2: Text(id=2, title="الرسالة", author_id=11, tags=("تصوف",)),
    3: Text(id=3, title="الكامل في التاريخ", author_id=12, tags=("تاريخ",)),
    4: Text(id=4, title="ديوان", author_id=13, tags=("أدب",)),
    5: Text(id=5, title="كتاب بلا مؤلف", author_id=99, tags=("أدب",)),
}

AUTHORS = {
    10: Author(id=10, name="الغزالي", death_date_ah=505, extra={"au_ar": "أبو حامد محمد بن محمد الغزالي"}),
    11: Author(id=11, name="القشيري", death_date_ah=465),
    12: Author(id=12, name="ابن الأثير", death_date_ah=630),
    13: Author(id=13, name="شاعر مجهول"),  # no recorded death date
}

# page documents of the fake index, in uri order
PAGES = [
    {"text_id": 1, "uri": "0001-001-0001", "vol": "1", "page_id": 11, "page_num": 1,
     "page_content": "قال الشيخ في علم التصوف ما قال"},
    {"text_id": 2, "uri": "0002-001-0005", "vol": "1", "page_id": 21, "page_num": 5,
     "page_content": "واشتغل بالتصوف زمنا طويلا"},
    {"text_id": 3, "uri": "0003-002-0100", "vol": "2", "page_id": 31, "page_num": 100,
     "page_content": "وفي هذه السنة مات صاحب القلب والقلوب"},
    {"text_id": 4, "uri": "0004-001-0007", "vol": "1", "page_id": 41, "page_num": 7,
     "page_content": "يا قلب قلب الهوى"},
    {"text_id": 5, "uri": "0005-001-0002", "vol": "1", "page_id": 51, "page_num": 2,
     "page_content": "قلبي معلق (12) بالكتاب"},
]


@pytest.fixture
def settings():
    return SearchSettings(max_result_window=1000, export_max_results=2000, default_page_size=50)


@pytest.fixture
def metadata():
    return MetadataStore(texts=dict(TEXTS), authors=dict(AUTHORS))


def _token_forms(token, clitic_field, field, clitics):
    forms = {token}
    if field == clitic_field and len(token) >= 3 and token[0] in clitics:
        forms.add(token[1:])
    return forms


class FakeIndex:
    """
    Minimal stand-in for the page index.

    Understands the bodies QueryBuilder produces: match_phrase or wildcard on
    one field, an optional terms filter, from/size, and highlighting of the
    first matching position.
    """

    def __init__(self, settings, pages=PAGES):
        self.settings = settings
        self.pages = pages
        self.requests = []

    def _match_at(self, tokens, clause, field):
        clitics = self.settings.clitics
        forms = [_token_forms(t, self.settings.clitic_field, field, clitics) for t in tokens]
        if "match_phrase" in clause:
            terms = normalize(clause["match_phrase"][field]).split()
            for start in range(len(tokens) - len(terms) + 1):
                if all(terms[i] in forms[start + i] for i in range(len(terms))):
                    return start, len(terms)
            return None
        pattern = clause["wildcard"][field]["value"]
        for i, variants in enumerate(forms):
            if any(fnmatch.fnmatchcase(v, pattern) for v in variants):
                return i, 1
        return None

    def search(self, body):
        self.requests.append(body)
        must = body["query"]["bool"]["must"][0]
        field = next(iter(next(iter(must.values()))))
        allowed = None
        for clause in body["query"]["bool"].get("filter", []):
            allowed = set(clause["terms"][self.settings.id_field])

        matched = []
        for page in sorted(self.pages, key=lambda p: p["uri"]):
            if allowed is not None and page["text_id"] not in allowed:
                continue
            tokens = normalize(page["page_content"]).split()
            found = self._match_at(tokens, must, field)
            if found is None:
                continue
            start, length = found
            original = page["page_content"].split()
            fragment = " ".join(
                original[:start]
                + [self.settings.pre_tag + " ".join(original[start:start + length]) + self.settings.post_tag]
                + original[start + length:]
            )
            matched.append({
                "_id": f"{page['text_id']}-{page['page_id']}",
                "_score": 1.0,
                "_source": page,
                "highlight": {field: [fragment]},
            })

        window = matched[body["from"]:body["from"] + body["size"]]
        return {"took": 1, "hits": {"total": {"value": len(matched)}, "hits": window}}

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == f"/{self.settings.index}/_search":
            return httpx.Response(200, json=self.search(json.loads(request.content)))
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def fake_index(settings):
    return FakeIndex(settings)


@pytest.fixture
async def engine(settings, fake_index):
    client = OpenSearchClient(settings, transport=httpx.MockTransport(fake_index.handler))
    yield client
    await client.close()
