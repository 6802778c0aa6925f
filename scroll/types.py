from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class SourceType(str, Enum):
    CATECHISM = "catechism"
    SCRIPTURE = "scripture"
    PATRISTIC = "patristic"
    TREATISE = "treatise"
    GENERIC = "generic"


class StructuralLevel(str, Enum):
    BOOK = "book"
    PART = "part"
    SECTION = "section"
    ARTICLE = "article"
    CHAPTER = "chapter"
    ROMAN = "roman"
    SUBSECTION = "subsection"
    BRIEF = "brief"
    PREFACE = "preface"
    HEADING = "heading"


class Alignment(str, Enum):
    CENTER = "center"
    LEFT = "left"


class NumberExtractor(str, Enum):
    PARAGRAPH = "paragraph"
    SECTION = "section"
    CHAPTER_VERSE = "chapter:verse"
    CUSTOM = "custom"


CENTERED_LEVELS = frozenset(
    {
        StructuralLevel.BOOK,
        StructuralLevel.PART,
        StructuralLevel.SECTION,
        StructuralLevel.ARTICLE,
        StructuralLevel.CHAPTER,
    }
)


def alignment_for(level: StructuralLevel) -> Alignment:
    if level in CENTERED_LEVELS:
        return Alignment.CENTER
    return Alignment.LEFT


def parse_source_type(value: Union[str, SourceType]) -> SourceType:
    if isinstance(value, SourceType):
        return value
    try:
        return SourceType(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError("unknown_source_type") from exc


@dataclass(frozen=True)
class StructuralNode:
    level: StructuralLevel
    content: str
    id: Optional[str] = None

    @property
    def node_type(self) -> str:
        return "structural"

    @property
    def alignment(self) -> Alignment:
        return alignment_for(self.level)


@dataclass(frozen=True)
class CitableNode:
    number: int
    display_number: str
    content: str
    id: Optional[str] = None

    @property
    def node_type(self) -> str:
        return "citable"


DocumentNode = Union[StructuralNode, CitableNode]


def node_to_dict(node: DocumentNode) -> dict:
    if isinstance(node, StructuralNode):
        return {
            "node_type": node.node_type,
            "id": node.id,
            "level": node.level.value,
            "alignment": node.alignment.value,
            "content": node.content,
        }
    if isinstance(node, CitableNode):
        return {
            "node_type": node.node_type,
            "id": node.id,
            "number": node.number,
            "display_number": node.display_number,
            "content": node.content,
        }
    raise TypeError(f"unknown_node_variant:{type(node).__name__}")


@dataclass(frozen=True)
class ParseStats:
    total: int
    structural: int
    citable: int


@dataclass(frozen=True)
class ParseResult:
    nodes: List[DocumentNode]
    stats: ParseStats


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    source_type: SourceType
    author: Optional[str] = None
    content_hash: Optional[str] = None
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass(frozen=True)
class StoredNode:
    document_id: str
    order: float
    node: DocumentNode

    @property
    def id(self) -> str:
        return self.node.id or ""


@dataclass(frozen=True)
class CitationAlias:
    id: str
    document_id: str
    prefix: str
    pattern: str
    number_extractor: NumberExtractor = NumberExtractor.PARAGRAPH
    display_format: str = "{prefix} {number}"
    priority: int = 0
    custom_group_index: Optional[int] = None
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass(frozen=True)
class CitationMatch:
    match: str
    start: int
    end: int
    alias: CitationAlias
    reference: str
    range_start: Optional[str] = None
    range_end: Optional[str] = None


@dataclass(frozen=True)
class ResolvedCitation:
    original_text: str
    document_id: str
    document_title: str
    reference: str
    display_text: str
    is_resolved: bool
    node_id: Optional[str] = None
    range_end: Optional[str] = None

    @property
    def citation_id(self) -> str:
        if self.node_id:
            return f"doc:{self.document_id}:{self.node_id}"
        return f"doc:{self.document_id}"


@dataclass(frozen=True)
class CitationId:
    document_id: str
    node_id: Optional[str] = None


@dataclass(frozen=True)
class PatternWarning:
    alias_id: str
    prefix: str
    reason: str
    detail: str = ""


@dataclass(frozen=True)
class CitationScan:
    matches: List[CitationMatch] = field(default_factory=list)
    warnings: List[PatternWarning] = field(default_factory=list)
