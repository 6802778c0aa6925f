import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from scroll.config import Settings, get_settings
from scroll.document_parser import parse_document
from scroll.neo4j import Neo4jStore, close_driver, ensure_schema, get_driver
from scroll.parsers import parse_content
from scroll.pipeline import run_import
from scroll.resolver import AliasCache, CitationResolver
from scroll.sources import read_file
from scroll.store import InMemoryStore, Store
from scroll.types import node_to_dict

SOURCE_TYPES = ["catechism", "scripture", "patristic", "treatise", "generic"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scroll")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser("parse")
    parse_parser.add_argument("--file", required=True, type=Path)
    parse_parser.add_argument("--source-type", choices=SOURCE_TYPES)

    import_parser = subparsers.add_parser("import", help="import a document into the neo4j store")
    source_group = import_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--file", type=Path)
    source_group.add_argument("--source_url")
    import_parser.add_argument("--title", required=True)
    import_parser.add_argument("--source-type", choices=SOURCE_TYPES)
    import_parser.add_argument("--author")
    import_parser.add_argument("--ignore", type=int, nargs="*", default=[])
    import_parser.add_argument("--resequence", action="store_true")

    match_parser = subparsers.add_parser("match", help="match citations against aliases in the neo4j store")
    match_parser.add_argument("--text", required=True)
    return parser


def build_store(settings: Settings) -> Store:
    if settings.storage_backend == "neo4j":
        driver = get_driver()
        ensure_schema(driver)
        return Neo4jStore(driver)
    return InMemoryStore()


def run_parse(args: argparse.Namespace, settings: Settings) -> dict:
    content, content_type = read_file(args.file)
    text, _ = parse_content(content, content_type, args.file.name)
    result = parse_document(text, args.source_type or settings.default_source_type)
    return {
        "nodes": [node_to_dict(node) for node in result.nodes],
        "stats": dataclasses.asdict(result.stats),
    }


def run_import_command(args: argparse.Namespace, settings: Settings, store: Store) -> dict:
    result = run_import(
        store,
        title=args.title,
        source_type=args.source_type or settings.default_source_type,
        file_path=args.file,
        source_url=args.source_url,
        author=args.author,
        ignored_indices=args.ignore,
        resequence_numbers=args.resequence,
    )
    return {"document_id": result.document.id, "stats": dataclasses.asdict(result.stats)}


def run_match(args: argparse.Namespace, settings: Settings, store: Store) -> dict:
    resolver = CitationResolver(
        store,
        AliasCache(store.list_aliases, settings.alias_cache_ttl_seconds),
        pattern_timeout_seconds=settings.pattern_timeout_seconds,
        max_pattern_length=settings.max_pattern_length,
    )
    resolved, warnings = resolver.resolve_text(args.text)
    return {
        "citations": [
            {
                "match": match.match,
                "start": match.start,
                "end": match.end,
                "citation_id": citation.citation_id,
                "display_text": citation.display_text,
                "is_resolved": citation.is_resolved,
            }
            for match, citation in resolved
        ],
        "warnings": [dataclasses.asdict(warning) for warning in warnings],
    }


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr)
    # import and match need state that outlives the process
    if args.command != "parse" and settings.storage_backend != "neo4j":
        parser.error("storage_backend_required")
    if args.command == "parse":
        output = run_parse(args, settings)
    else:
        store = build_store(settings)
        try:
            if args.command == "import":
                output = run_import_command(args, settings, store)
            else:
                output = run_match(args, settings, store)
        finally:
            if settings.storage_backend == "neo4j":
                close_driver()
    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
