import logging
from typing import Dict, List, Optional, Sequence

from neo4j import Driver, GraphDatabase

from scroll.config import Settings, get_settings
from scroll.types import (
    CitableNode,
    CitationAlias,
    Document,
    DocumentNode,
    NumberExtractor,
    SourceType,
    StoredNode,
    StructuralLevel,
    StructuralNode,
)

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    "CREATE CONSTRAINT document_id_unique IF NOT EXISTS FOR (d:Document) REQUIRE d.document_id IS UNIQUE",
    "CREATE CONSTRAINT document_node_id_unique IF NOT EXISTS FOR (n:DocumentNode) REQUIRE n.node_id IS UNIQUE",
    "CREATE CONSTRAINT citation_alias_id_unique IF NOT EXISTS FOR (a:CitationAlias) REQUIRE a.alias_id IS UNIQUE",
    "CREATE INDEX document_node_order IF NOT EXISTS FOR (n:DocumentNode) ON (n.document_id, n.order)",
)

_driver: Optional[Driver] = None


def build_driver(settings: Settings) -> Driver:
    return GraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
        connection_timeout=settings.neo4j_connection_timeout_seconds,
    )


def get_driver() -> Driver:
    global _driver
    if _driver is None:
        _driver = build_driver(get_settings())
    return _driver


def close_driver() -> None:
    global _driver
    if _driver is not None:
        _driver.close()
        _driver = None


def ensure_schema(driver: Driver) -> None:
    with driver.session() as session:
        for statement in SCHEMA_STATEMENTS:
            session.run(statement).consume()
    logger.info("schema_reconciled:%s", len(SCHEMA_STATEMENTS))


def node_properties(stored: StoredNode) -> Dict[str, object]:
    node = stored.node
    properties: Dict[str, object] = {
        "node_id": stored.id,
        "document_id": stored.document_id,
        "order": stored.order,
        "content": node.content,
        "level": None,
        "number": None,
        "display_number": None,
    }
    if isinstance(node, StructuralNode):
        properties["node_type"] = "structural"
        properties["level"] = node.level.value
    elif isinstance(node, CitableNode):
        properties["node_type"] = "citable"
        properties["number"] = node.number
        properties["display_number"] = node.display_number
    else:
        raise TypeError(f"unknown_node_variant:{type(node).__name__}")
    return properties


def node_from_record(record: Dict[str, object]) -> StoredNode:
    node: DocumentNode
    if record["node_type"] == "structural":
        node = StructuralNode(
            level=StructuralLevel(record["level"]),
            content=str(record["content"]),
            id=str(record["node_id"]),
        )
    else:
        node = CitableNode(
            number=int(record["number"]),
            display_number=str(record["display_number"]),
            content=str(record["content"]),
            id=str(record["node_id"]),
        )
    return StoredNode(document_id=str(record["document_id"]), order=float(record["order"]), node=node)


def document_from_record(record: Dict[str, object]) -> Document:
    return Document(
        id=str(record["document_id"]),
        title=str(record["title"]),
        source_type=SourceType(record["source_type"]),
        author=record.get("author"),
        content_hash=record.get("content_hash"),
        created_at=float(record.get("created_at") or 0.0),
        updated_at=float(record.get("updated_at") or 0.0),
    )


def alias_from_record(record: Dict[str, object]) -> CitationAlias:
    group_index = record.get("custom_group_index")
    return CitationAlias(
        id=str(record["alias_id"]),
        document_id=str(record["document_id"]),
        prefix=str(record["prefix"]),
        pattern=str(record["pattern"]),
        number_extractor=NumberExtractor(record["number_extractor"]),
        display_format=str(record["display_format"]),
        priority=int(record.get("priority") or 0),
        custom_group_index=int(group_index) if group_index is not None else None,
        created_at=float(record.get("created_at") or 0.0),
        updated_at=float(record.get("updated_at") or 0.0),
    )


class Neo4jStore:
    def __init__(self, driver: Driver) -> None:
        self._driver = driver

    def list_documents(self) -> List[Document]:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (d:Document) RETURN d {.*} AS document ORDER BY d.created_at DESC"
            ).data()
        return [document_from_record(record["document"]) for record in records]

    def get_document(self, document_id: str) -> Optional[Document]:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (d:Document {document_id: $document_id}) RETURN d {.*} AS document",
                {"document_id": document_id},
            ).data()
        if not records:
            return None
        return document_from_record(records[0]["document"])

    def save_document(self, document: Document, nodes: Sequence[StoredNode]) -> None:
        document_query = (
            "MERGE (d:Document {document_id: $document_id}) "
            "SET d.title = $title, d.author = $author, d.source_type = $source_type, "
            "d.content_hash = $content_hash, d.created_at = $created_at, d.updated_at = $updated_at"
        )
        nodes_query = (
            "MATCH (d:Document {document_id: $document_id}) "
            "OPTIONAL MATCH (d)-[:HAS_NODE]->(old:DocumentNode) "
            "DETACH DELETE old "
            "WITH DISTINCT d "
            "UNWIND $nodes AS node "
            "CREATE (n:DocumentNode) SET n = node "
            "MERGE (d)-[:HAS_NODE]->(n)"
        )
        parameters = {
            "document_id": document.id,
            "title": document.title,
            "author": document.author,
            "source_type": document.source_type.value,
            "content_hash": document.content_hash,
            "created_at": document.created_at,
            "updated_at": document.updated_at,
        }
        with self._driver.session() as session:
            session.run(document_query, parameters).consume()
            session.run(
                nodes_query,
                {"document_id": document.id, "nodes": [node_properties(node) for node in nodes]},
            ).consume()

    def delete_document(self, document_id: str) -> bool:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (d:Document {document_id: $document_id}) "
                "OPTIONAL MATCH (d)-[:HAS_NODE|HAS_ALIAS]->(child) "
                "DETACH DELETE child "
                "WITH DISTINCT d "
                "DETACH DELETE d "
                "RETURN count(*) AS deleted",
                {"document_id": document_id},
            ).data()
        return bool(records) and records[0]["deleted"] > 0

    def get_nodes(self, document_id: str) -> List[StoredNode]:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (:Document {document_id: $document_id})-[:HAS_NODE]->(n:DocumentNode) "
                "RETURN n {.*} AS node ORDER BY n.order ASC",
                {"document_id": document_id},
            ).data()
        return [node_from_record(record["node"]) for record in records]

    def set_node_orders(self, document_id: str, orders: Dict[str, float]) -> None:
        updates = [{"node_id": node_id, "order": order} for node_id, order in orders.items()]
        with self._driver.session() as session:
            records = session.run(
                "UNWIND $updates AS update "
                "MATCH (:Document {document_id: $document_id})-[:HAS_NODE]->"
                "(n:DocumentNode {node_id: update.node_id}) "
                "SET n.order = update.order "
                "RETURN count(n) AS updated",
                {"document_id": document_id, "updates": updates},
            ).data()
        if not records or records[0]["updated"] != len(updates):
            raise LookupError("node_not_found")

    def list_aliases(self, document_id: Optional[str] = None) -> List[CitationAlias]:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (a:CitationAlias) "
                "WHERE $document_id IS NULL OR a.document_id = $document_id "
                "RETURN a {.*} AS alias ORDER BY a.created_at ASC, a.alias_id ASC",
                {"document_id": document_id},
            ).data()
        return [alias_from_record(record["alias"]) for record in records]

    def get_alias(self, alias_id: str) -> Optional[CitationAlias]:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (a:CitationAlias {alias_id: $alias_id}) RETURN a {.*} AS alias",
                {"alias_id": alias_id},
            ).data()
        if not records:
            return None
        return alias_from_record(records[0]["alias"])

    def put_alias(self, alias: CitationAlias) -> None:
        with self._driver.session() as session:
            session.run(
                "MATCH (d:Document {document_id: $document_id}) "
                "MERGE (a:CitationAlias {alias_id: $alias_id}) "
                "SET a.document_id = $document_id, a.prefix = $prefix, a.pattern = $pattern, "
                "a.number_extractor = $number_extractor, a.display_format = $display_format, "
                "a.priority = $priority, a.custom_group_index = $custom_group_index, "
                "a.created_at = $created_at, a.updated_at = $updated_at "
                "MERGE (d)-[:HAS_ALIAS]->(a)",
                {
                    "alias_id": alias.id,
                    "document_id": alias.document_id,
                    "prefix": alias.prefix,
                    "pattern": alias.pattern,
                    "number_extractor": alias.number_extractor.value,
                    "display_format": alias.display_format,
                    "priority": alias.priority,
                    "custom_group_index": alias.custom_group_index,
                    "created_at": alias.created_at,
                    "updated_at": alias.updated_at,
                },
            ).consume()

    def delete_alias(self, alias_id: str) -> bool:
        with self._driver.session() as session:
            records = session.run(
                "MATCH (a:CitationAlias {alias_id: $alias_id}) DETACH DELETE a RETURN count(*) AS deleted",
                {"alias_id": alias_id},
            ).data()
        return bool(records) and records[0]["deleted"] > 0

    def check_ready(self) -> bool:
        try:
            self._driver.verify_connectivity()
            return True
        except Exception:
            logger.exception("neo4j_connectivity_failed")
            return False
