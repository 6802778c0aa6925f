import dataclasses
from typing import Dict, Iterable, List

from app.core.config import get_settings
from app.core.metrics import observe_document_parsed
from app.db.store import get_store
from app.services.citations import get_resolver, stored_node_to_dict
from scroll.document_parser import parse_document
from scroll.ordering import move_node
from scroll.pipeline import import_text
from scroll.types import Document, node_to_dict, parse_source_type


def document_to_dict(document: Document) -> Dict[str, object]:
    payload = dataclasses.asdict(document)
    payload["source_type"] = document.source_type.value
    return payload


def check_document_size(text: str) -> None:
    if len(text) > get_settings().max_document_chars:
        raise ValueError("document_too_large")


def preview_document(text: str, source_type: str) -> Dict[str, object]:
    check_document_size(text)
    source_type_value = parse_source_type(source_type)
    result = parse_document(text, source_type_value)
    observe_document_parsed(source_type_value.value, "preview")
    return {
        "nodes": [node_to_dict(node) for node in result.nodes],
        "stats": dataclasses.asdict(result.stats),
    }


def create_document(
    title: str,
    text: str,
    source_type: str,
    author: str | None = None,
    ignored_indices: Iterable[int] = (),
    resequence: bool = False,
) -> Dict[str, object]:
    check_document_size(text)
    result = import_text(
        get_store(),
        text,
        title,
        source_type,
        author=author,
        ignored_indices=ignored_indices,
        resequence_numbers=resequence,
    )
    observe_document_parsed(result.document.source_type.value, "import")
    return {
        "document": document_to_dict(result.document),
        "stats": dataclasses.asdict(result.stats),
    }


def list_documents() -> List[Dict[str, object]]:
    return [document_to_dict(document) for document in get_store().list_documents()]


def get_document(document_id: str) -> Dict[str, object]:
    document = get_store().get_document(document_id)
    if document is None:
        raise LookupError("document_not_found")
    return document_to_dict(document)


def delete_document(document_id: str) -> None:
    if not get_resolver().delete_document(document_id):
        raise LookupError("document_not_found")


def list_nodes(document_id: str) -> List[Dict[str, object]]:
    store = get_store()
    if store.get_document(document_id) is None:
        raise LookupError("document_not_found")
    return [stored_node_to_dict(stored) for stored in store.get_nodes(document_id)]


def move_document_node(
    document_id: str,
    node_id: str,
    before_id: str | None = None,
    after_id: str | None = None,
) -> Dict[str, object]:
    store = get_store()
    if store.get_document(document_id) is None:
        raise LookupError("document_not_found")
    order = move_node(store, document_id, node_id, before_id=before_id, after_id=after_id)
    return {"node_id": node_id, "order": order}
