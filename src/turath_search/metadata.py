"""
Metadata store and spreadsheet loader.

Texts and authors are loaded once from .xlsx workbooks and then treated as
read-only snapshots. Columns are located by header name; a required column
that cannot be found is reported instead of being guessed.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from openpyxl import load_workbook

from turath_search.errors import ColumnNotFound, MetadataError
from turath_search.filters import observed_death_range
from turath_search.models import Author, DeathDateRange, Text
from turath_search.normalize import normalize

logger = logging.getLogger(__name__)

TEXT_COLUMNS = {
    "id": ["id", "text_id", "text id"],
    "title": ["ti_ar", "title", "name"],
    "author_id": ["au_id", "author_id", "authorid"],
    "tags": ["tags", "genres"],
    "volumes": ["vols", "volumes"],
}

AUTHOR_COLUMNS = {
    "id": ["id", "au_id", "author_id", "المعرف"],
    "short_name": ["au_sh_ar", "authorshortarabic", "الاسم المختصر"],
    "full_name": ["au_ar", "authorarabic", "الاسم الكامل", "المؤلف"],
    "name": ["name", "author_name", "authorname", "الاسم"],
    "death": ["death", "death_date", "deathdate", "تاريخ الوفاة", "الوفاة"],
    "birth": ["birth", "birth_date", "birthdate", "تاريخ الميلاد", "الميلاد"],
}

AUTHOR_HEADER_HINTS = ["id", "au_id", "author_id", "au_ar", "au_sh_ar", "death"]
HEADER_SCAN_ROWS = 10
MIN_PARTIAL_MATCH = 4

NUMBER_RE = re.compile(r"\d+")

PathLike = Union[str, Path]


def find_column(headers: Sequence[Any], candidates: Sequence[str]) -> int:
    """
    Index of the first header matching a candidate name, or -1.

    Exact (case-insensitive) matches win over substring matches. Short
    candidates such as "id" only match exactly, so "au_id" is never taken
    for a text id.
    """
    names = [str(h).strip().lower() if h is not None else None for h in headers]
    for candidate in candidates:
        candidate = candidate.lower()
        for i, name in enumerate(names):
            if name == candidate:
                return i
    for candidate in candidates:
        candidate = candidate.lower()
        if len(candidate) < MIN_PARTIAL_MATCH:
            continue
        for i, name in enumerate(names):
            if name and candidate in name:
                return i
    return -1


def parse_int(value: Any) -> Optional[int]:
    """Read an integer from a cell. Strings use their first digit run ("450 هـ" -> 450)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    match = NUMBER_RE.search(str(value))
    return int(match.group()) if match else None


def parse_tags(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    seen: List[str] = []
    for tag in str(value).split(","):
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def _cell(row: Sequence[Any], index: int) -> Any:
    if index == -1 or index >= len(row):
        return None
    return row[index]


def _is_blank(row: Sequence[Any]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)


def _extras(headers: Sequence[Any], row: Sequence[Any], used: Sequence[int]) -> Dict[str, Any]:
    extra = {}
    for j, header in enumerate(headers):
        if j in used or header is None or j >= len(row) or row[j] is None:
            continue
        extra[str(header)] = row[j]
    return extra


def read_rows(path: PathLike) -> List[Tuple[Any, ...]]:
    """All rows of the first worksheet as value tuples."""
    workbook = load_workbook(filename=path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _register(records: Dict[int, Any], record, sheet: str, row_number: int) -> None:
    if record.id in records:
        raise MetadataError(f"Duplicate id {record.id} in {sheet} (row {row_number})")
    records[record.id] = record


def texts_from_rows(rows: Sequence[Sequence[Any]], sheet: str = "texts") -> Dict[int, Text]:
    """Build the text map from raw rows; the first row is the header."""
    if not rows:
        raise MetadataError(f"{sheet} is empty")
    headers = rows[0]
    cols = {key: find_column(headers, names) for key, names in TEXT_COLUMNS.items()}
    if cols["id"] == -1:
        raise ColumnNotFound(sheet, "id", TEXT_COLUMNS["id"])
    if cols["author_id"] == -1:
        raise ColumnNotFound(sheet, "author id", TEXT_COLUMNS["author_id"])

    texts: Dict[int, Text] = {}
    for offset, row in enumerate(rows[1:], start=2):
        if _is_blank(row):
            continue
        text_id = parse_int(_cell(row, cols["id"]))
        if not text_id:
            logger.warning(f"Skipping row {offset} in {sheet}: invalid text id")
            continue
        author_id = parse_int(_cell(row, cols["author_id"]))
        if author_id is None:
            logger.warning(f"Row {offset} in {sheet}: text {text_id} has no author id")
            author_id = 0
        title = _cell(row, cols["title"])
        volumes = parse_int(_cell(row, cols["volumes"]))
        text = Text(
            id=text_id,
            title=str(title) if title is not None else "",
            author_id=author_id,
            tags=parse_tags(_cell(row, cols["tags"])),
            volume_count=volumes if volumes else 1,
            extra=_extras(headers, row, [i for i in cols.values() if i != -1]),
        )
        _register(texts, text, sheet, offset)

    logger.info(f"Loaded {len(texts)} texts from {sheet}")
    return texts


def _find_author_header(rows: Sequence[Sequence[Any]]) -> int:
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        for cell in row:
            if isinstance(cell, str) and any(h in cell.lower() for h in AUTHOR_HEADER_HINTS):
                return i
    return 0


def authors_from_rows(
    rows: Sequence[Sequence[Any]],
    sheet: str = "authors",
    allow_row_ids: bool = False,
) -> Dict[int, Author]:
    """
    Build the author map from raw rows.

    The header may sit anywhere in the first few rows. Without an id column
    the load fails unless allow_row_ids is set, in which case the 1-based
    sheet row number becomes the id. Duplicate ids always fail.
    """
    if not rows:
        raise MetadataError(f"{sheet} is empty")
    header_index = _find_author_header(rows)
    headers = rows[header_index]
    cols = {key: find_column(headers, names) for key, names in AUTHOR_COLUMNS.items()}
    if cols["id"] == -1 and not allow_row_ids:
        raise ColumnNotFound(sheet, "id", AUTHOR_COLUMNS["id"])
    if cols["id"] == -1:
        logger.warning(f"No id column in {sheet}; using sheet row numbers as author ids")

    authors: Dict[int, Author] = {}
    for row_number, row in enumerate(rows[header_index + 1:], start=header_index + 2):
        if _is_blank(row):
            continue
        if cols["id"] == -1:
            author_id = row_number
        else:
            author_id = parse_int(_cell(row, cols["id"]))
            if author_id is None:
                logger.warning(f"Skipping row {row_number} in {sheet}: invalid author id")
                continue

        name = None
        for key in ("short_name", "full_name", "name"):
            value = _cell(row, cols[key])
            if value is not None and str(value).strip():
                name = str(value).strip()
                break

        author = Author(
            id=author_id,
            name=name or f"المؤلف {author_id}",
            death_date_ah=parse_int(_cell(row, cols["death"])),
            birth_date_ah=parse_int(_cell(row, cols["birth"])),
            extra=_extras(
                headers, row,
                [cols[k] for k in ("id", "death", "birth") if cols[k] != -1],
            ),
        )
        _register(authors, author, sheet, row_number)

    logger.info(f"Loaded {len(authors)} authors from {sheet}")
    return authors


def load_texts(path: PathLike) -> Dict[int, Text]:
    return texts_from_rows(read_rows(path), sheet=Path(path).name)


def load_authors(path: PathLike, allow_row_ids: bool = False) -> Dict[int, Author]:
    return authors_from_rows(read_rows(path), sheet=Path(path).name, allow_row_ids=allow_row_ids)


@dataclass
class MetadataStore:
    """Read-only keyed access to texts and authors."""
    texts: Mapping[int, Text] = field(default_factory=dict)
    authors: Mapping[int, Author] = field(default_factory=dict)

    @classmethod
    def from_xlsx(cls, texts_path: PathLike, authors_path: PathLike, allow_row_ids: bool = False) -> "MetadataStore":
        return cls(
            texts=load_texts(texts_path),
            authors=load_authors(authors_path, allow_row_ids=allow_row_ids),
        )

    def text(self, text_id: int) -> Optional[Text]:
        return self.texts.get(text_id)

    def author(self, author_id: int) -> Optional[Author]:
        return self.authors.get(author_id)

    def available_genres(self) -> List[str]:
        genres = set()
        for text in self.texts.values():
            genres.update(text.tags)
        return sorted(genres)

    def death_date_range(self) -> Optional[DeathDateRange]:
        """Observed min/max death date, recomputed from the current authors."""
        return observed_death_range(self.authors.values())

    def search_authors(self, query: str, limit: int = 100) -> List[Author]:
        """Authors whose name (or Arabic name fields) contains the query, normalized."""
        needle = normalize(query.strip()).lower()
        if not needle:
            return []
        matches = []
        for author in self.authors.values():
            names = [author.name] + [
                str(author.extra[k]) for k in ("au_ar", "au_sh_ar") if k in author.extra
            ]
            if any(needle in normalize(name).lower() for name in names):
                matches.append(author)
                if len(matches) >= limit:
                    break
        return matches
