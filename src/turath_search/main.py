"""
CLI Entrypoint for Turath Search

Runs one search against the page index and outputs results as JSON.
Also creates the page index and answers metadata lookups (genres, authors).
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict

from dotenv import load_dotenv

# Load .env file before reading settings from the environment
load_dotenv()

from turath_search.backends.index_settings import build_index_body
from turath_search.backends.opensearch import OpenSearchClient
from turath_search.config import SearchSettings
from turath_search.errors import InvalidQuery, TurathSearchError
from turath_search.metadata import MetadataStore
from turath_search.models import DeathDateRange, FilterCriteria
from turath_search.orchestrator import SearchOrchestrator


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # suppress noisy httpx logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Parse command-line arguments
def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Turath Search - search historical Arabic texts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--query", "-q", type=str,
                        help="Word or phrase to search for; a single word may contain one * wildcard")
    action.add_argument("--create-index", action="store_true",
                        help="Create the page index with its clitic and exact analyzers, then exit")
    action.add_argument("--list-genres", action="store_true",
                        help="List the genres found in texts.xlsx, then exit")
    action.add_argument("--find-author", type=str, metavar="NAME",
                        help="List authors whose name contains NAME, then exit")
    parser.add_argument("--exact", action="store_true",
                        help="Match the word exactly, without attached proclitics")
    parser.add_argument("--page", type=int, default=1, help="Result page, 1-based (default: 1)")
    parser.add_argument("--page-size", type=int, default=None,
                        help="Results per page (default: TURATH_PAGE_SIZE or 250)")
    parser.add_argument("--genre", action="append", default=[], help="Restrict to a genre (repeatable)")
    parser.add_argument("--author", action="append", type=int, default=[],
                        help="Restrict to an author id (repeatable)")
    parser.add_argument("--death-min", type=int, default=None, help="Earliest author death date (AH)")
    parser.add_argument("--death-max", type=int, default=None, help="Latest author death date (AH)")
    parser.add_argument("--export", action="store_true",
                        help="Fetch up to the export cap in one request instead of a page")
    parser.add_argument("--texts", help="Path to texts.xlsx")
    parser.add_argument("--authors", help="Path to authors.xlsx")
    parser.add_argument("--allow-row-ids", action="store_true",
                        help="Use sheet row numbers as author ids when authors.xlsx has no id column")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="Output file path (default: print to stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    # only index creation runs without metadata
    if not args.create_index and not (args.texts and args.authors):
        parser.error("--texts and --authors are required")
    return args


def build_criteria(args: argparse.Namespace, metadata: MetadataStore) -> FilterCriteria:
    date_range = None
    if args.death_min is not None or args.death_max is not None:
        observed = metadata.death_date_range()
        low = args.death_min if args.death_min is not None else (observed.min if observed else 0)
        high = args.death_max if args.death_max is not None else (observed.max if observed else low)
        date_range = DeathDateRange(min=low, max=high)
    return FilterCriteria(
        genres=frozenset(args.genre),
        author_ids=frozenset(args.author),
        death_date_range=date_range,
    )


async def create_index(engine: OpenSearchClient, settings: SearchSettings) -> Dict[str, Any]:
    """Create the page index with analyzers matching the query normalizer."""
    return await engine.create_index(build_index_body(settings))


def describe_metadata(args: argparse.Namespace, metadata: MetadataStore) -> Dict[str, Any]:
    """Answer --list-genres / --find-author from the loaded metadata."""
    if args.list_genres:
        return {"genres": metadata.available_genres()}
    authors = metadata.search_authors(args.find_author)
    return {
        "query": args.find_author,
        "authors": [
            {"id": a.id, "name": a.name, "death_date_ah": a.death_date_ah}
            for a in authors
        ],
    }


async def search(args: argparse.Namespace, settings: SearchSettings, metadata: MetadataStore) -> Dict[str, Any]:
    criteria = build_criteria(args, metadata)

    async with OpenSearchClient(settings) as engine:
        orchestrator = SearchOrchestrator(engine, metadata, settings)
        if args.export:
            result = await orchestrator.export(args.query, criteria=criteria, is_exact=args.exact)
        else:
            result = await orchestrator.execute(
                args.query,
                page=args.page,
                page_size=args.page_size,
                criteria=criteria,
                is_exact=args.exact,
            )

    return {
        "query": args.query,
        "normalized_query": result.normalized_query,
        "total": result.total,
        "from": result.offset,
        "size": result.size,
        "hits": [hit.to_dict() for hit in result.hits],
    }


# Main entry point of the entire program
async def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = SearchSettings.from_env()

    if args.create_index:
        async with OpenSearchClient(settings) as engine:
            payload = await create_index(engine, settings)
    else:
        metadata = MetadataStore.from_xlsx(args.texts, args.authors, allow_row_ids=args.allow_row_ids)
        if args.query is not None:
            payload = await search(args, settings, metadata)
        else:
            payload = describe_metadata(args, metadata)

    output = json.dumps(payload, indent=2, ensure_ascii=False)

    if args.output:  # Write to file
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Results saved to {args.output}", file=sys.stderr)
    else:
        print(output)
    return 0


def run(argv=None) -> int:
    try:
        return asyncio.run(main(argv))
    except InvalidQuery as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:  # bad paging or an inverted death-date range
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except TurathSearchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(run())
