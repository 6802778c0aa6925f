import dataclasses
import threading
from typing import Dict, List, Optional, Protocol, Sequence

from scroll.types import CitationAlias, Document, StoredNode


class Store(Protocol):
    def list_documents(self) -> List[Document]:
        ...

    def get_document(self, document_id: str) -> Optional[Document]:
        ...

    def save_document(self, document: Document, nodes: Sequence[StoredNode]) -> None:
        ...

    def delete_document(self, document_id: str) -> bool:
        ...

    def get_nodes(self, document_id: str) -> List[StoredNode]:
        ...

    def set_node_orders(self, document_id: str, orders: Dict[str, float]) -> None:
        ...

    def list_aliases(self, document_id: Optional[str] = None) -> List[CitationAlias]:
        ...

    def get_alias(self, alias_id: str) -> Optional[CitationAlias]:
        ...

    def put_alias(self, alias: CitationAlias) -> None:
        ...

    def delete_alias(self, alias_id: str) -> bool:
        ...

    def check_ready(self) -> bool:
        ...


class InMemoryStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: Dict[str, Document] = {}
        self._nodes: Dict[str, Dict[str, StoredNode]] = {}
        self._aliases: Dict[str, CitationAlias] = {}

    def list_documents(self) -> List[Document]:
        with self._lock:
            return sorted(self._documents.values(), key=lambda document: document.created_at, reverse=True)

    def get_document(self, document_id: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(document_id)

    def save_document(self, document: Document, nodes: Sequence[StoredNode]) -> None:
        with self._lock:
            self._documents[document.id] = document
            self._nodes[document.id] = {node.id: node for node in nodes}

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            existed = self._documents.pop(document_id, None) is not None
            self._nodes.pop(document_id, None)
            for alias_id in [alias.id for alias in self._aliases.values() if alias.document_id == document_id]:
                del self._aliases[alias_id]
            return existed

    def get_nodes(self, document_id: str) -> List[StoredNode]:
        with self._lock:
            nodes = list(self._nodes.get(document_id, {}).values())
        return sorted(nodes, key=lambda node: node.order)

    def set_node_orders(self, document_id: str, orders: Dict[str, float]) -> None:
        with self._lock:
            nodes = self._nodes.get(document_id, {})
            for node_id, order in orders.items():
                if node_id not in nodes:
                    raise LookupError("node_not_found")
                nodes[node_id] = dataclasses.replace(nodes[node_id], order=order)

    def list_aliases(self, document_id: Optional[str] = None) -> List[CitationAlias]:
        with self._lock:
            aliases = list(self._aliases.values())
        if document_id is not None:
            aliases = [alias for alias in aliases if alias.document_id == document_id]
        return aliases

    def get_alias(self, alias_id: str) -> Optional[CitationAlias]:
        with self._lock:
            return self._aliases.get(alias_id)

    def put_alias(self, alias: CitationAlias) -> None:
        with self._lock:
            self._aliases[alias.id] = alias

    def delete_alias(self, alias_id: str) -> bool:
        with self._lock:
            return self._aliases.pop(alias_id, None) is not None

    def check_ready(self) -> bool:
        return True
