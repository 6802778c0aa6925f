import dataclasses
from functools import lru_cache
from typing import Dict, List, Optional

from app.core.config import get_settings
from app.core.metrics import observe_citation_scan
from app.db.store import close_store, get_store
from scroll.aliases import CITATION_PRESETS
from scroll.autolink import link_citations
from scroll.resolver import AliasCache, CitationResolver
from scroll.types import (
    CitationAlias,
    CitationMatch,
    NumberExtractor,
    ResolvedCitation,
    StoredNode,
    node_to_dict,
)


@lru_cache
def get_resolver() -> CitationResolver:
    settings = get_settings()
    store = get_store()
    return CitationResolver(
        store,
        AliasCache(store.list_aliases, settings.alias_cache_ttl_seconds),
        pattern_timeout_seconds=settings.pattern_timeout_seconds,
        max_pattern_length=settings.max_pattern_length,
    )


def alias_to_dict(alias: CitationAlias) -> Dict[str, object]:
    payload = dataclasses.asdict(alias)
    payload["number_extractor"] = alias.number_extractor.value
    return payload


def match_to_dict(match: CitationMatch) -> Dict[str, object]:
    return {
        "match": match.match,
        "start": match.start,
        "end": match.end,
        "alias_id": match.alias.id,
        "prefix": match.alias.prefix,
        "document_id": match.alias.document_id,
        "reference": match.reference,
        "range_start": match.range_start,
        "range_end": match.range_end,
    }


def resolved_to_dict(citation: ResolvedCitation) -> Dict[str, object]:
    payload = dataclasses.asdict(citation)
    payload["citation_id"] = citation.citation_id
    return payload


def stored_node_to_dict(stored: StoredNode) -> Dict[str, object]:
    payload = node_to_dict(stored.node)
    payload["document_id"] = stored.document_id
    payload["order"] = stored.order
    return payload


def scan_text(text: str) -> Dict[str, object]:
    scan = get_resolver().scan(text)
    observe_citation_scan(len(scan.matches), scan.warnings)
    return {
        "matches": [match_to_dict(match) for match in scan.matches],
        "warnings": [dataclasses.asdict(warning) for warning in scan.warnings],
    }


def resolve_text(text: str) -> Dict[str, object]:
    resolver = get_resolver()
    resolved, warnings = resolver.resolve_text(text)
    observe_citation_scan(len(resolved), warnings)
    return {
        "citations": [
            {"match": match_to_dict(match), "resolved": resolved_to_dict(citation)}
            for match, citation in resolved
        ],
        "warnings": [dataclasses.asdict(warning) for warning in warnings],
    }


def link_html(html: str) -> Dict[str, object]:
    linked_html, linked_count = link_citations(html, get_resolver())
    return {"html": linked_html, "linked_count": linked_count}


def lookup_citation(citation_id: str) -> Dict[str, object]:
    document, stored = get_resolver().lookup(citation_id)
    return {
        "document_id": document.id,
        "document_title": document.title,
        "node": stored_node_to_dict(stored) if stored is not None else None,
    }


def list_aliases(document_id: Optional[str] = None) -> List[Dict[str, object]]:
    return [alias_to_dict(alias) for alias in get_store().list_aliases(document_id)]


def list_presets() -> List[Dict[str, object]]:
    presets = []
    for preset in CITATION_PRESETS:
        payload = dataclasses.asdict(preset)
        payload["number_extractor"] = preset.number_extractor.value
        presets.append(payload)
    return presets


def create_alias(
    document_id: str,
    prefix: str,
    pattern: str,
    number_extractor: str = NumberExtractor.PARAGRAPH.value,
    display_format: str = "{prefix} {number}",
    priority: int = 0,
    custom_group_index: Optional[int] = None,
) -> Dict[str, object]:
    alias = get_resolver().create_alias(
        document_id,
        prefix,
        pattern,
        number_extractor=NumberExtractor(number_extractor),
        display_format=display_format,
        priority=priority,
        custom_group_index=custom_group_index,
    )
    return alias_to_dict(alias)


def update_alias(alias_id: str, changes: Dict[str, object]) -> Dict[str, object]:
    return alias_to_dict(get_resolver().update_alias(alias_id, **changes))


def delete_alias(alias_id: str) -> Dict[str, object]:
    return alias_to_dict(get_resolver().delete_alias(alias_id))


def close_resolver() -> None:
    get_resolver.cache_clear()
    close_store()
