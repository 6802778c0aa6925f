import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

import regex

from scroll.types import (
    CitationAlias,
    CitationMatch,
    CitationScan,
    NumberExtractor,
    PatternWarning,
    SourceType,
)

logger = logging.getLogger(__name__)

DEFAULT_PATTERN_TIMEOUT_SECONDS = 0.05
DEFAULT_MAX_PATTERN_LENGTH = 500
MAX_MATCHES_PER_ALIAS = 1000
PATTERN_FLAGS = regex.IGNORECASE


@dataclass(frozen=True)
class CitationPreset:
    id: str
    label: str
    description: str
    default_prefix: str
    default_pattern: str
    number_extractor: NumberExtractor
    display_format: str


CITATION_PRESETS: Tuple[CitationPreset, ...] = (
    CitationPreset(
        id="catechism",
        label="Catechism",
        description="CCC §17, CCC 17-20",
        default_prefix="CCC",
        default_pattern=r"(CCC)\s*§?§?\s*(\d+)(?:\s*[-–]\s*(\d+))?",
        number_extractor=NumberExtractor.PARAGRAPH,
        display_format="CCC §{number}",
    ),
    CitationPreset(
        id="summa",
        label="Summa Theologiae",
        description="ST I.2.3, ST II-II.4.1",
        default_prefix="ST",
        default_pattern=r"(ST)\s+(I{1,3}(?:-I{1,3})?)\.(\d+)\.(\d+)",
        number_extractor=NumberExtractor.SECTION,
        display_format="ST {number}",
    ),
    CitationPreset(
        id="confessions",
        label="Confessions",
        description="Augustine Conf. I.1",
        default_prefix="Conf.",
        default_pattern=r"(Conf\.|Confessions)\s+([IVX]+)\.(\d+)",
        number_extractor=NumberExtractor.CHAPTER_VERSE,
        display_format="Conf. {number}",
    ),
    CitationPreset(
        id="generic",
        label="Generic Numbered",
        description="Prefix followed by number",
        default_prefix="",
        default_pattern="",
        number_extractor=NumberExtractor.PARAGRAPH,
        display_format="{prefix} {number}",
    ),
)


def get_preset(preset_id: str) -> Optional[CitationPreset]:
    for preset in CITATION_PRESETS:
        if preset.id == preset_id:
            return preset
    return None


def alias_from_preset(
    alias_id: str,
    document_id: str,
    preset_id: str,
    prefix: Optional[str] = None,
    pattern: Optional[str] = None,
    priority: int = 0,
) -> CitationAlias:
    preset = get_preset(preset_id)
    if preset is None:
        raise ValueError("unknown_citation_preset")
    return CitationAlias(
        id=alias_id,
        document_id=document_id,
        prefix=prefix if prefix is not None else preset.default_prefix,
        pattern=pattern if pattern is not None else preset.default_pattern,
        number_extractor=preset.number_extractor,
        display_format=preset.display_format,
        priority=priority,
    )


@lru_cache(maxsize=256)
def compile_alias_pattern(pattern: str) -> "regex.Pattern":
    return regex.compile(pattern, PATTERN_FLAGS)


def validate_alias(alias: CitationAlias, max_pattern_length: int = DEFAULT_MAX_PATTERN_LENGTH) -> None:
    if not isinstance(alias.prefix, str) or not alias.prefix.strip():
        raise ValueError("alias_prefix_required")
    if not isinstance(alias.pattern, str) or not alias.pattern:
        raise ValueError("alias_pattern_required")
    if not isinstance(alias.display_format, str):
        raise ValueError("alias_display_format_invalid")
    if isinstance(alias.priority, bool) or not isinstance(alias.priority, int):
        raise ValueError("alias_priority_invalid")
    if len(alias.pattern) > max_pattern_length:
        raise ValueError("alias_pattern_too_long")
    try:
        compile_alias_pattern(alias.pattern)
    except regex.error as exc:
        raise ValueError("alias_pattern_invalid") from exc
    if alias.number_extractor == NumberExtractor.CUSTOM:
        if alias.custom_group_index is not None and alias.custom_group_index < 0:
            raise ValueError("alias_custom_group_index_negative")
    elif alias.custom_group_index is not None:
        raise ValueError("alias_custom_group_index_requires_custom_extractor")


def prioritized(aliases: Iterable[CitationAlias]) -> List[CitationAlias]:
    return sorted(aliases, key=lambda alias: -alias.priority)


def overlaps(start: int, end: int, accepted: Sequence[CitationMatch]) -> bool:
    return any(start < match.end and match.start < end for match in accepted)


def _group(match, index: int) -> str:
    if index > len(match.groups()):
        return ""
    return match.group(index) or ""


def extract_reference(match, alias: CitationAlias) -> str:
    extractor = alias.number_extractor
    if extractor == NumberExtractor.PARAGRAPH:
        return _group(match, 2) or _group(match, 1)
    if extractor == NumberExtractor.SECTION:
        parts = [_group(match, index) for index in range(2, len(match.groups()) + 1)]
        return ".".join(part for part in parts if part)
    if extractor == NumberExtractor.CHAPTER_VERSE:
        return f"{_group(match, 2)}.{_group(match, 3)}"
    if extractor == NumberExtractor.CUSTOM:
        index = alias.custom_group_index if alias.custom_group_index is not None else 1
        return _group(match, index)
    raise ValueError(f"unknown_number_extractor:{extractor}")


def extract_range_end(match, alias: CitationAlias) -> Optional[str]:
    if alias.number_extractor == NumberExtractor.PARAGRAPH:
        return _group(match, 3) or None
    return None


def _scan_alias(
    text: str, alias: CitationAlias, timeout_seconds: float
) -> Tuple[List[Tuple[int, int, object]], bool]:
    """Return the non-empty matches of one alias and whether the match cap cut the scan short."""
    compiled = compile_alias_pattern(alias.pattern)
    found = []
    for match in compiled.finditer(text, timeout=timeout_seconds):
        if match.end() == match.start():
            continue
        if len(found) >= MAX_MATCHES_PER_ALIAS:
            return found, True
        found.append((match.start(), match.end(), match))
    return found, False


def scan_citations(
    text: str,
    aliases: Iterable[CitationAlias],
    timeout_seconds: float = DEFAULT_PATTERN_TIMEOUT_SECONDS,
    max_pattern_length: int = DEFAULT_MAX_PATTERN_LENGTH,
) -> CitationScan:
    accepted: List[CitationMatch] = []
    warnings: List[PatternWarning] = []
    for alias in prioritized(aliases):
        if not alias.pattern:
            continue
        if len(alias.pattern) > max_pattern_length:
            warnings.append(PatternWarning(alias.id, alias.prefix, "too_long"))
            logger.warning("alias_pattern_too_long:%s", alias.prefix)
            continue
        try:
            candidates, truncated = _scan_alias(text, alias, timeout_seconds)
        except regex.error as exc:
            warnings.append(PatternWarning(alias.id, alias.prefix, "invalid", str(exc)))
            logger.warning("alias_pattern_invalid:%s:%s", alias.prefix, exc)
            continue
        except TimeoutError:
            warnings.append(PatternWarning(alias.id, alias.prefix, "timeout"))
            logger.warning("alias_pattern_timeout:%s", alias.prefix)
            continue
        if truncated:
            warnings.append(PatternWarning(alias.id, alias.prefix, "truncated", f"max_matches={MAX_MATCHES_PER_ALIAS}"))
            logger.warning("alias_pattern_truncated:%s", alias.prefix)
        for start, end, match in candidates:
            if overlaps(start, end, accepted):
                continue
            reference = extract_reference(match, alias)
            range_end = extract_range_end(match, alias)
            accepted.append(
                CitationMatch(
                    match=match.group(0),
                    start=start,
                    end=end,
                    alias=alias,
                    reference=reference,
                    range_start=reference if range_end else None,
                    range_end=range_end,
                )
            )
    accepted.sort(key=lambda item: item.start)
    return CitationScan(matches=accepted, warnings=warnings)


def find_matches(text: str, aliases: Iterable[CitationAlias], **options) -> List[CitationMatch]:
    return scan_citations(text, aliases, **options).matches


def is_citation_text(text: str, aliases: Iterable[CitationAlias], **options) -> bool:
    matches = find_matches(text, aliases, **options)
    return bool(matches) and matches[0].match == text.strip()


def default_citation_prefix(source_type: SourceType, title: str) -> str:
    if source_type == SourceType.CATECHISM:
        return "CCC"
    return title


def format_citation_range(prefix: str, start: int, end: Optional[int] = None) -> str:
    if end is None or end == start:
        return f"{prefix} {start}"
    return f"{prefix} {start}-{end}"
