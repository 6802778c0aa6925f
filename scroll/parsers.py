import io
import re
from typing import Tuple

from bs4 import BeautifulSoup
from pypdf import PdfReader

TEXT_SUFFIXES = (".txt", ".md", ".text")
PAGE_GAP_RE = re.compile(r"\n{3,}")


def parse_content(content: bytes, content_type: str, source_name: str) -> Tuple[str, str]:
    name = source_name.lower()
    if content_type == "application/pdf" or name.endswith(".pdf"):
        return normalize_text(extract_pdf_text(content)), "application/pdf"
    if content_type in ("text/plain", "text/markdown") or name.endswith(TEXT_SUFFIXES):
        return normalize_text(decode_text(content)), "text/plain"
    if content_type == "text/html" or name.endswith((".html", ".htm")):
        return normalize_text(extract_html_text(content)), "text/html"
    raise ValueError("unsupported_content_type")


def decode_text(content: bytes) -> str:
    return content.decode("utf-8-sig", errors="replace")


def extract_html_text(content: bytes) -> str:
    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text("\n")


def extract_pdf_text(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    parts = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        parts.append(page_text)
    return "\n".join(parts)


def normalize_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = PAGE_GAP_RE.sub("\n\n", text)
    return text.strip()
