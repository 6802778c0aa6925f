from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from scroll.resolver import CitationResolver, format_citation_id, parse_citation_id

CITATION_LINK_CLASS = "citation-link"
UNRESOLVED_CLASS = "citation-unresolved"
CITATION_DATA_ATTR = "data-citation"
UNRESOLVED_TITLE = "Referenced paragraph not found"
SKIPPED_PARENTS = ["a", "script", "style", "code", "pre"]


def _linkable_strings(soup: BeautifulSoup) -> List[NavigableString]:
    strings = []
    for text in soup.find_all(string=True):
        if isinstance(text, PreformattedString) or not text.strip():
            continue
        if text.find_parent(SKIPPED_PARENTS) is not None:
            continue
        strings.append(text)
    return strings


def link_citations(html: str, resolver: CitationResolver) -> Tuple[str, int]:
    soup = BeautifulSoup(html, "html.parser")
    linked = 0
    for text_node in _linkable_strings(soup):
        text = str(text_node)
        matches = resolver.find_matches(text)
        if not matches:
            continue
        pieces = []
        last_index = 0
        for match in matches:
            if match.start > last_index:
                pieces.append(NavigableString(text[last_index:match.start]))
            resolved = resolver.resolve_match(match)
            link = soup.new_tag("a")
            link.string = match.match
            link[CITATION_DATA_ATTR] = format_citation_id(resolved.document_id, resolved.node_id)
            classes = [CITATION_LINK_CLASS]
            if not resolved.is_resolved:
                classes.append(UNRESOLVED_CLASS)
                link["title"] = UNRESOLVED_TITLE
            link["class"] = classes
            pieces.append(link)
            linked += 1
            last_index = match.end
        if last_index < len(text):
            pieces.append(NavigableString(text[last_index:]))
        for piece in pieces:
            text_node.insert_before(piece)
        text_node.extract()
    return str(soup), linked


def is_citation_link(element: Tag) -> bool:
    return element.name == "a" and CITATION_LINK_CLASS in (element.get("class") or [])


def extract_citation_from_link(element: Tag) -> Optional[Dict[str, Optional[str]]]:
    citation_id = element.get(CITATION_DATA_ATTR)
    if not citation_id:
        return None
    parsed = parse_citation_id(str(citation_id))
    if parsed is None:
        return None
    return {"type": "document", "document_id": parsed.document_id, "node_id": parsed.node_id}


def unlink_citations(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for link in soup.find_all("a"):
        if is_citation_link(link):
            link.replace_with(NavigableString(link.get_text()))
    return str(soup)
