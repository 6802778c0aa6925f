import re
from typing import List, Optional, Tuple

from scroll.types import StructuralLevel

ORDINAL = r"(?:ONE|TWO|THREE|FOUR)"

STRUCTURAL_PATTERNS: Tuple[Tuple[re.Pattern, StructuralLevel], ...] = (
    (re.compile(r"^IN BRIEF$", re.IGNORECASE), StructuralLevel.BRIEF),
    (re.compile(rf"^(PART\s+(?:{ORDINAL}|[IVX]+))\b(?:\s*[-:.]?\s*(.+))?$", re.IGNORECASE), StructuralLevel.PART),
    (re.compile(rf"^(BOOK\s+(?:{ORDINAL}|[IVX]+))\b(?:\s*[-:.]?\s*(.+))?$", re.IGNORECASE), StructuralLevel.BOOK),
    (re.compile(r"^ARTICLE\s+\d+", re.IGNORECASE), StructuralLevel.ARTICLE),
    (re.compile(rf"^SECTION\s+(?:{ORDINAL}|\d+)\b", re.IGNORECASE), StructuralLevel.SECTION),
    (re.compile(r"^Chapter\s+[IVX]+\b\.?[-—]?", re.IGNORECASE), StructuralLevel.CHAPTER),
    (re.compile(r"^CHAPTER\s+(?:\d+|[IVX]+)\b", re.IGNORECASE), StructuralLevel.CHAPTER),
    (re.compile(r"^([IVX]+)\.\s*(.+)$"), StructuralLevel.ROMAN),
    (re.compile(r"^(PREFACE|GREETING|INTRODUCTION|PROLOGUE|EPILOGUE)$", re.IGNORECASE), StructuralLevel.PREFACE),
    (re.compile(r"^(?=(?:\s*[A-Z]){3})[A-Z][A-Z\s]*[A-Z]$"), StructuralLevel.SECTION),
)

# Markers that PDF extraction tends to glue onto the preceding text.
SPLIT_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\s+(IN BRIEF)\s*"),
    re.compile(r"\s+([IVX]+\.)\s+"),
    re.compile(r"\s+(ARTICLE\s+\d+)"),
)

WHITESPACE_RE = re.compile(r"\s+")


def classify_line(line: str) -> Optional[Tuple[StructuralLevel, str]]:
    trimmed = line.strip()
    if not trimmed:
        return None
    for pattern, level in STRUCTURAL_PATTERNS:
        if pattern.search(trimmed):
            return level, trimmed
    return None


def split_compound_line(line: str) -> List[str]:
    parts: List[str] = []
    remaining = line.strip()
    split_applied = False
    for pattern in SPLIT_PATTERNS:
        match = pattern.search(remaining)
        if match is None:
            continue
        split_applied = True
        before = remaining[: match.start()].strip()
        marker = match.group(1).strip()
        if before:
            parts.append(before)
        if marker:
            parts.append(marker)
        remaining = remaining[match.end():].strip()
    if not split_applied:
        return [line]
    if remaining:
        parts.append(remaining)
    if not parts or _visible(" ".join(parts)) != _visible(line):
        return [line]
    return parts


def _visible(text: str) -> str:
    return WHITESPACE_RE.sub("", text)
