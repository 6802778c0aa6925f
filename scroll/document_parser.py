import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Union

from scroll.numbering import extract_paragraph_number
from scroll.structure import classify_line, split_compound_line
from scroll.types import (
    CitableNode,
    DocumentNode,
    ParseResult,
    ParseStats,
    SourceType,
    StructuralNode,
    parse_source_type,
)

logger = logging.getLogger(__name__)

LINE_BREAK_RE = re.compile(r"\r?\n")

SYNTHESIZED_NUMBERING = frozenset({SourceType.PATRISTIC, SourceType.GENERIC})


class ParserState(str, Enum):
    SCANNING = "scanning"
    ACCUMULATING = "accumulating"


@dataclass
class OpenParagraph:
    number: int
    display_number: str
    parts: List[str] = field(default_factory=list)

    def to_node(self) -> CitableNode:
        return CitableNode(
            number=self.number,
            display_number=self.display_number,
            content=" ".join(self.parts).strip(),
        )


class DocumentParser:
    def __init__(self, source_type: SourceType) -> None:
        self.source_type = source_type
        self.nodes: List[DocumentNode] = []
        self.paragraph: Optional[OpenParagraph] = None
        self.citable_count = 0

    @property
    def state(self) -> ParserState:
        if self.paragraph is None:
            return ParserState.SCANNING
        return ParserState.ACCUMULATING

    def feed(self, fragment: str) -> None:
        structural = classify_line(fragment)
        if structural is not None:
            level, content = structural
            self.flush()
            self.nodes.append(StructuralNode(level=level, content=content))
            return
        numbered = extract_paragraph_number(fragment, self.source_type)
        if numbered is not None:
            number, display_number, body = numbered
            self.flush()
            self.paragraph = OpenParagraph(number, display_number, [body])
            return
        if self.paragraph is not None:
            self.paragraph.parts.append(fragment)
            return
        if self.source_type in SYNTHESIZED_NUMBERING:
            next_number = self.citable_count + 1
            self.paragraph = OpenParagraph(next_number, str(next_number), [fragment])
            return
        logger.debug("unnumbered_fragment_dropped:%s", self.source_type.value)

    def flush(self) -> None:
        if self.paragraph is None:
            return
        node = self.paragraph.to_node()
        self.paragraph = None
        if not node.content:
            return
        self.citable_count += 1
        self.nodes.append(node)

    def finish(self) -> ParseResult:
        self.flush()
        return ParseResult(nodes=list(self.nodes), stats=compute_stats(self.nodes))


def iter_fragments(raw_text: str) -> Iterator[str]:
    for raw_line in LINE_BREAK_RE.split(raw_text):
        line = raw_line.strip()
        if not line:
            continue
        for fragment in split_compound_line(line):
            if fragment.strip():
                yield fragment.strip()


def compute_stats(nodes: Iterable[DocumentNode]) -> ParseStats:
    structural = 0
    citable = 0
    for node in nodes:
        if isinstance(node, StructuralNode):
            structural += 1
        elif isinstance(node, CitableNode):
            citable += 1
        else:
            raise TypeError(f"unknown_node_variant:{type(node).__name__}")
    return ParseStats(total=structural + citable, structural=structural, citable=citable)


def parse_document(raw_text: str, source_type: Union[str, SourceType]) -> ParseResult:
    parser = DocumentParser(parse_source_type(source_type))
    for fragment in iter_fragments(raw_text):
        parser.feed(fragment)
    result = parser.finish()
    logger.info(
        "document_parsed:%s total=%s structural=%s citable=%s",
        parser.source_type.value,
        result.stats.total,
        result.stats.structural,
        result.stats.citable,
    )
    return result
