import pytest

from scroll.canonical import canonicalize, to_review_nodes
from scroll.document_parser import parse_document
from scroll.resolver import (
    UNKNOWN_DOCUMENT_TITLE,
    AliasCache,
    CitationResolver,
    find_citable_node,
    format_citation_id,
    is_document_citation_id,
    parse_citation_id,
    resolve,
)
from scroll.store import InMemoryStore
from scroll.types import CitationAlias, CitationId, CitationMatch, Document, NumberExtractor, SourceType


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def seed_document(store: InMemoryStore, document_id: str = "doc-1", paragraphs: int = 50) -> Document:
    document = Document(id=document_id, title="Catechism", source_type=SourceType.CATECHISM)
    text = "\n".join(f"{number} Paragraph {number}." for number in range(1, paragraphs + 1))
    parsed = parse_document(text, document.source_type)
    ids = iter([f"{document_id}-n{index}" for index in range(1, paragraphs + 1)])
    store.save_document(document, canonicalize(document.id, to_review_nodes(parsed.nodes), id_factory=lambda: next(ids)))
    return document


def make_match(reference: str, document_id: str = "doc-1", **alias_overrides) -> CitationMatch:
    alias = CitationAlias(
        id="ccc",
        document_id=document_id,
        prefix="CCC",
        pattern=r"CCC (\d+)",
        display_format=alias_overrides.pop("display_format", "{prefix} §{number}"),
        **alias_overrides,
    )
    return CitationMatch(match=f"CCC {reference}", start=0, end=4 + len(reference), alias=alias, reference=reference)


def test_reference_beyond_last_paragraph_is_unresolved():
    store = InMemoryStore()
    document = seed_document(store)
    resolved = resolve(make_match("999"), {document.id: document}, store.get_nodes)
    assert resolved.is_resolved is False
    assert resolved.node_id is None
    assert resolved.document_title == "Catechism"
    assert resolved.display_text == "CCC §999"
    assert resolved.citation_id == "doc:doc-1"


def test_reference_resolves_to_node():
    store = InMemoryStore()
    document = seed_document(store)
    resolved = resolve(make_match("17"), {document.id: document}, store.get_nodes)
    assert resolved.is_resolved is True
    assert resolved.node_id == "doc-1-n17"
    assert resolved.citation_id == "doc:doc-1:doc-1-n17"


def test_missing_document_uses_placeholder_title():
    resolved = resolve(make_match("17", document_id="gone"), {}, lambda document_id: [])
    assert resolved.is_resolved is False
    assert resolved.document_title == UNKNOWN_DOCUMENT_TITLE
    assert resolved.display_text == "CCC 17"


def test_non_numeric_reference_is_unresolved():
    store = InMemoryStore()
    document = seed_document(store)
    resolved = resolve(make_match("XVII"), {document.id: document}, store.get_nodes)
    assert resolved.is_resolved is False


def test_non_paragraph_extractor_does_not_resolve_nodes():
    store = InMemoryStore()
    document = seed_document(store)
    match = make_match("1", number_extractor=NumberExtractor.CUSTOM)
    resolved = resolve(match, {document.id: document}, store.get_nodes)
    assert resolved.is_resolved is False
    assert resolved.display_text == "CCC §1"


def test_display_format_replaces_every_placeholder():
    store = InMemoryStore()
    document = seed_document(store)
    match = make_match("3", display_format="{prefix}{number} ({prefix} {number})")
    assert resolve(match, {document.id: document}, store.get_nodes).display_text == "CCC3 (CCC 3)"


def test_find_citable_node_takes_first_duplicate():
    parsed = parse_document("3 First three\n3 Second three", "generic")
    node = find_citable_node(parsed.nodes, 3)
    assert node.content == "First three"
    assert find_citable_node(parsed.nodes, 4) is None


def test_citation_id_round_trip_and_rejection():
    assert format_citation_id("d1") == "doc:d1"
    assert format_citation_id("d1", "n1") == "doc:d1:n1"
    assert parse_citation_id("doc:d1:n1") == CitationId(document_id="d1", node_id="n1")
    assert parse_citation_id("doc:d1") == CitationId(document_id="d1")
    assert is_document_citation_id("bible:John:3:16") is False
    for value in ["bible:John:3:16", "doc:", "doc::n1", "doc:d1:", "doc:d1:n1:extra"]:
        assert parse_citation_id(value) is None


def test_alias_cache_honours_ttl():
    calls = []
    clock = FakeClock()

    def loader():
        calls.append(clock.now)
        return []

    cache = AliasCache(loader, ttl_seconds=5.0, clock=clock)
    cache.get()
    clock.now += 4.0
    cache.get()
    assert len(calls) == 1
    clock.now += 2.0
    cache.get()
    assert len(calls) == 2


def test_alias_cache_invalidate_forces_reload():
    calls = []
    cache = AliasCache(lambda: calls.append(1) or [], ttl_seconds=60.0, clock=FakeClock())
    cache.get()
    cache.invalidate()
    cache.get()
    assert len(calls) == 2


def make_resolver(store: InMemoryStore) -> CitationResolver:
    return CitationResolver(store, AliasCache(store.list_aliases, ttl_seconds=60.0, clock=FakeClock()))


def test_resolver_sees_alias_mutations_immediately():
    store = InMemoryStore()
    seed_document(store)
    resolver = make_resolver(store)
    assert resolver.find_matches("CCC 17") == []
    alias = resolver.create_alias("doc-1", "CCC", r"CCC (\d+)", display_format="{prefix} §{number}")
    resolved, warnings = resolver.resolve_text("see CCC 17")
    assert warnings == []
    assert [(match.match, citation.node_id) for match, citation in resolved] == [("CCC 17", "doc-1-n17")]
    resolver.update_alias(alias.id, pattern=r"Catechism (\d+)")
    assert resolver.find_matches("CCC 17") == []
    resolver.delete_alias(alias.id)
    assert resolver.find_matches("Catechism 17") == []


def test_listeners_run_after_invalidation():
    store = InMemoryStore()
    seed_document(store)
    resolver = make_resolver(store)
    seen = []
    resolver.subscribe(lambda action, alias: seen.append((action, [item.id for item in resolver.aliases()])))
    alias = resolver.create_alias("doc-1", "CCC", r"CCC (\d+)")
    resolver.delete_alias(alias.id)
    assert seen == [("created", [alias.id]), ("deleted", [])]


def test_alias_prefix_is_unique_per_document():
    store = InMemoryStore()
    seed_document(store, "doc-1")
    seed_document(store, "doc-2", paragraphs=3)
    resolver = make_resolver(store)
    first = resolver.create_alias("doc-1", "CCC", r"CCC (\d+)")
    with pytest.raises(ValueError, match="alias_prefix_in_use"):
        resolver.create_alias("doc-1", "ccc", r"Cat (\d+)")
    resolver.create_alias("doc-2", "CCC", r"Cat (\d+)")
    assert resolver.update_alias(first.id, prefix="CCC ", priority=4).priority == 4


def test_alias_mutation_errors():
    store = InMemoryStore()
    seed_document(store)
    resolver = make_resolver(store)
    with pytest.raises(LookupError, match="document_not_found"):
        resolver.create_alias("missing", "CCC", r"CCC (\d+)")
    with pytest.raises(ValueError, match="alias_pattern_invalid"):
        resolver.create_alias("doc-1", "CCC", r"CCC (\d+")
    with pytest.raises(LookupError, match="alias_not_found"):
        resolver.update_alias("missing", priority=1)
    with pytest.raises(LookupError, match="alias_not_found"):
        resolver.delete_alias("missing")
    alias = resolver.create_alias("doc-1", "CCC", r"CCC (\d+)")
    with pytest.raises(ValueError, match="alias_field_not_updatable"):
        resolver.update_alias(alias.id, document_id="doc-2")


def test_update_rejects_cleared_required_fields():
    store = InMemoryStore()
    seed_document(store)
    resolver = make_resolver(store)
    alias = resolver.create_alias("doc-1", "CCC", r"CCC (\d+)", number_extractor=NumberExtractor.CUSTOM, custom_group_index=1)
    for field in ("prefix", "pattern", "number_extractor", "display_format", "priority"):
        with pytest.raises(ValueError, match=f"alias_field_required:{field}"):
            resolver.update_alias(alias.id, **{field: None})
    assert store.get_alias(alias.id) == alias
    assert resolver.update_alias(alias.id, custom_group_index=None).custom_group_index is None
    assert [match.reference for match in resolver.find_matches("CCC 17")] == ["17"]


def test_lookup_citation_ids():
    store = InMemoryStore()
    document = seed_document(store)
    resolver = make_resolver(store)
    assert resolver.lookup("doc:doc-1") == (document, None)
    found, stored = resolver.lookup("doc:doc-1:doc-1-n2")
    assert found == document
    assert stored.node.number == 2
    with pytest.raises(ValueError, match="not_a_document_citation"):
        resolver.lookup("bible:John:3:16")
    with pytest.raises(LookupError, match="document_not_found"):
        resolver.lookup("doc:missing")
    with pytest.raises(LookupError, match="node_not_found"):
        resolver.lookup("doc:doc-1:missing")


def test_deleting_document_drops_its_aliases():
    store = InMemoryStore()
    seed_document(store)
    resolver = make_resolver(store)
    resolver.create_alias("doc-1", "CCC", r"CCC (\d+)")
    assert resolver.find_matches("CCC 1")
    assert resolver.delete_document("doc-1") is True
    assert resolver.find_matches("CCC 1") == []
    assert resolver.delete_document("doc-1") is False
