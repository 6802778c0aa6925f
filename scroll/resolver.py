import dataclasses
import logging
import threading
import time
import uuid
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

from scroll.aliases import (
    DEFAULT_MAX_PATTERN_LENGTH,
    DEFAULT_PATTERN_TIMEOUT_SECONDS,
    scan_citations,
    validate_alias,
)
from scroll.store import Store
from scroll.types import (
    CitableNode,
    CitationAlias,
    CitationId,
    CitationMatch,
    CitationScan,
    Document,
    DocumentNode,
    NumberExtractor,
    PatternWarning,
    ResolvedCitation,
    StoredNode,
)

logger = logging.getLogger(__name__)

DEFAULT_ALIAS_CACHE_TTL_SECONDS = 5.0
UNKNOWN_DOCUMENT_TITLE = "Unknown Document"
DOCUMENT_CITATION_PREFIX = "doc:"

AliasListener = Callable[[str, CitationAlias], None]


class AliasCache:
    def __init__(
        self,
        loader: Callable[[], List[CitationAlias]],
        ttl_seconds: float = DEFAULT_ALIAS_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[List[CitationAlias]] = None
        self._loaded_at = 0.0

    def get(self) -> List[CitationAlias]:
        with self._lock:
            now = self._clock()
            if self._value is None or now - self._loaded_at > self._ttl_seconds:
                self._value = list(self._loader())
                self._loaded_at = now
                logger.debug("alias_cache_reloaded:%s", len(self._value))
            return list(self._value)

    def invalidate(self) -> None:
        with self._lock:
            self._value = None


def format_display_text(alias: CitationAlias, reference: str) -> str:
    return alias.display_format.replace("{prefix}", alias.prefix).replace("{number}", reference)


def _parse_paragraph_number(reference: str) -> Optional[int]:
    value = reference.strip()
    if not value.isdecimal():
        return None
    return int(value)


def find_citable_node(nodes: Sequence[Union[StoredNode, DocumentNode]], number: int) -> Optional[CitableNode]:
    for item in nodes:
        node = item.node if isinstance(item, StoredNode) else item
        if isinstance(node, CitableNode) and node.number == number:
            return node
    return None


def resolve(
    match: CitationMatch,
    documents: Mapping[str, Document],
    nodes_of: Callable[[str], Sequence[Union[StoredNode, DocumentNode]]],
) -> ResolvedCitation:
    alias = match.alias
    document = documents.get(alias.document_id)
    if document is None:
        return ResolvedCitation(
            original_text=match.match,
            document_id=alias.document_id,
            document_title=UNKNOWN_DOCUMENT_TITLE,
            reference=match.reference,
            display_text=match.match,
            is_resolved=False,
            range_end=match.range_end,
        )
    node_id = None
    if alias.number_extractor == NumberExtractor.PARAGRAPH:
        number = _parse_paragraph_number(match.reference)
        if number is not None:
            node = find_citable_node(nodes_of(document.id), number)
            if node is not None:
                node_id = node.id
    return ResolvedCitation(
        original_text=match.match,
        document_id=document.id,
        document_title=document.title,
        reference=match.reference,
        display_text=format_display_text(alias, match.reference),
        is_resolved=node_id is not None,
        node_id=node_id,
        range_end=match.range_end,
    )


def format_citation_id(document_id: str, node_id: Optional[str] = None) -> str:
    if node_id:
        return f"{DOCUMENT_CITATION_PREFIX}{document_id}:{node_id}"
    return f"{DOCUMENT_CITATION_PREFIX}{document_id}"


def is_document_citation_id(value: str) -> bool:
    return value.startswith(DOCUMENT_CITATION_PREFIX)


def parse_citation_id(value: str) -> Optional[CitationId]:
    if not is_document_citation_id(value):
        return None
    parts = value[len(DOCUMENT_CITATION_PREFIX):].split(":")
    if not parts[0]:
        return None
    if len(parts) == 1:
        return CitationId(document_id=parts[0])
    if len(parts) == 2 and parts[1]:
        return CitationId(document_id=parts[0], node_id=parts[1])
    return None


class CitationResolver:
    def __init__(
        self,
        store: Store,
        cache: Optional[AliasCache] = None,
        pattern_timeout_seconds: float = DEFAULT_PATTERN_TIMEOUT_SECONDS,
        max_pattern_length: int = DEFAULT_MAX_PATTERN_LENGTH,
    ) -> None:
        self.store = store
        self.cache = cache or AliasCache(store.list_aliases)
        self.pattern_timeout_seconds = pattern_timeout_seconds
        self.max_pattern_length = max_pattern_length
        self._listeners: List[AliasListener] = []

    def subscribe(self, listener: AliasListener) -> None:
        self._listeners.append(listener)

    def aliases(self) -> List[CitationAlias]:
        return self.cache.get()

    def scan(self, text: str) -> CitationScan:
        return scan_citations(
            text,
            self.aliases(),
            timeout_seconds=self.pattern_timeout_seconds,
            max_pattern_length=self.max_pattern_length,
        )

    def find_matches(self, text: str) -> List[CitationMatch]:
        return self.scan(text).matches

    def resolve_match(self, match: CitationMatch) -> ResolvedCitation:
        document = self.store.get_document(match.alias.document_id)
        documents = {document.id: document} if document is not None else {}
        return resolve(match, documents, self.store.get_nodes)

    def resolve_text(self, text: str) -> Tuple[List[Tuple[CitationMatch, ResolvedCitation]], List[PatternWarning]]:
        scan = self.scan(text)
        return [(match, self.resolve_match(match)) for match in scan.matches], scan.warnings

    def lookup(self, citation_id: str) -> Tuple[Document, Optional[StoredNode]]:
        parsed = parse_citation_id(citation_id)
        if parsed is None:
            raise ValueError("not_a_document_citation")
        document = self.store.get_document(parsed.document_id)
        if document is None:
            raise LookupError("document_not_found")
        if parsed.node_id is None:
            return document, None
        for stored in self.store.get_nodes(document.id):
            if stored.id == parsed.node_id:
                return document, stored
        raise LookupError("node_not_found")

    def create_alias(
        self,
        document_id: str,
        prefix: str,
        pattern: str,
        number_extractor: NumberExtractor = NumberExtractor.PARAGRAPH,
        display_format: str = "{prefix} {number}",
        priority: int = 0,
        custom_group_index: Optional[int] = None,
    ) -> CitationAlias:
        if self.store.get_document(document_id) is None:
            raise LookupError("document_not_found")
        timestamp = time.time()
        alias = CitationAlias(
            id=str(uuid.uuid4()),
            document_id=document_id,
            prefix=prefix.strip(),
            pattern=pattern,
            number_extractor=NumberExtractor(number_extractor),
            display_format=display_format,
            priority=priority,
            custom_group_index=custom_group_index,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._check_alias(alias)
        self.store.put_alias(alias)
        self._mutated("created", alias)
        return alias

    def update_alias(self, alias_id: str, **changes) -> CitationAlias:
        current = self.store.get_alias(alias_id)
        if current is None:
            raise LookupError("alias_not_found")
        allowed = {"prefix", "pattern", "number_extractor", "display_format", "priority", "custom_group_index"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError("alias_field_not_updatable")
        for name in sorted(set(changes) - {"custom_group_index"}):
            if changes[name] is None:
                raise ValueError(f"alias_field_required:{name}")
        if "number_extractor" in changes:
            changes["number_extractor"] = NumberExtractor(changes["number_extractor"])
        if "prefix" in changes:
            changes["prefix"] = changes["prefix"].strip()
        alias = dataclasses.replace(current, updated_at=time.time(), **changes)
        self._check_alias(alias)
        self.store.put_alias(alias)
        self._mutated("updated", alias)
        return alias

    def delete_alias(self, alias_id: str) -> CitationAlias:
        current = self.store.get_alias(alias_id)
        if current is None:
            raise LookupError("alias_not_found")
        self.store.delete_alias(alias_id)
        self._mutated("deleted", current)
        return current

    def delete_document(self, document_id: str) -> bool:
        existed = self.store.delete_document(document_id)
        self.cache.invalidate()
        logger.info("document_deleted:%s", document_id)
        return existed

    def is_prefix_in_use(self, document_id: str, prefix: str, exclude_id: Optional[str] = None) -> bool:
        wanted = prefix.strip().lower()
        return any(
            alias.prefix.lower() == wanted and alias.id != exclude_id
            for alias in self.store.list_aliases(document_id)
        )

    def _check_alias(self, alias: CitationAlias) -> None:
        validate_alias(alias, self.max_pattern_length)
        if self.is_prefix_in_use(alias.document_id, alias.prefix, exclude_id=alias.id):
            raise ValueError("alias_prefix_in_use")

    def _mutated(self, action: str, alias: CitationAlias) -> None:
        self.cache.invalidate()
        logger.info("alias_%s:%s:%s", action, alias.document_id, alias.prefix)
        for listener in list(self._listeners):
            listener(action, alias)
