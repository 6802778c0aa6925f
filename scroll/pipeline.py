import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from scroll.canonical import canonicalize, generate_id, resequence, to_review_nodes
from scroll.document_parser import compute_stats, parse_document
from scroll.parsers import parse_content
from scroll.sources import fetch_source, read_file
from scroll.store import Store
from scroll.types import Document, ParseStats, SourceType, parse_source_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    document: Document
    stats: ParseStats


def content_hash(content: bytes) -> str:
    return "sha256:" + hashlib.sha256(content).hexdigest()


def load_source(file_path: Optional[Path] = None, source_url: Optional[str] = None) -> Tuple[str, bytes]:
    if file_path is not None:
        content, response_type = read_file(file_path)
        text, _ = parse_content(content, response_type, file_path.name)
    elif source_url:
        content, response_type = fetch_source(source_url)
        text, _ = parse_content(content, response_type, source_url)
    else:
        raise ValueError("source_required")
    return text, content


def import_text(
    store: Store,
    raw_text: str,
    title: str,
    source_type: Union[str, SourceType],
    author: Optional[str] = None,
    ignored_indices: Iterable[int] = (),
    resequence_numbers: bool = False,
    source_hash: Optional[str] = None,
) -> ImportResult:
    if not title.strip():
        raise ValueError("title_required")
    source_type_value = parse_source_type(source_type)
    parsed = parse_document(raw_text, source_type_value)
    review_nodes = to_review_nodes(parsed.nodes, ignored_indices)
    if resequence_numbers:
        accepted = resequence([review.node for review in review_nodes if not review.ignored])
        review_nodes = to_review_nodes(accepted)
    timestamp = time.time()
    document = Document(
        id=generate_id(),
        title=title.strip(),
        source_type=source_type_value,
        author=author,
        content_hash=source_hash or content_hash(raw_text.encode("utf-8")),
        created_at=timestamp,
        updated_at=timestamp,
    )
    stored_nodes = canonicalize(document.id, review_nodes)
    store.save_document(document, stored_nodes)
    stats = compute_stats(stored.node for stored in stored_nodes)
    logger.info("document_imported:%s nodes=%s", document.id, stats.total)
    return ImportResult(document=document, stats=stats)


def run_import(
    store: Store,
    title: str,
    source_type: Union[str, SourceType],
    file_path: Optional[Path] = None,
    source_url: Optional[str] = None,
    author: Optional[str] = None,
    ignored_indices: Iterable[int] = (),
    resequence_numbers: bool = False,
) -> ImportResult:
    text, content = load_source(file_path, source_url)
    return import_text(
        store,
        text,
        title,
        source_type,
        author=author,
        ignored_indices=ignored_indices,
        resequence_numbers=resequence_numbers,
        source_hash=content_hash(content),
    )
