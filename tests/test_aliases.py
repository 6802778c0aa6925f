import itertools
import time

import pytest

from scroll import aliases as aliases_module
from scroll.aliases import (
    alias_from_preset,
    default_citation_prefix,
    find_matches,
    format_citation_range,
    get_preset,
    is_citation_text,
    scan_citations,
    validate_alias,
)
from scroll.types import CitationAlias, NumberExtractor, SourceType


def make_alias(alias_id: str, prefix: str, pattern: str, **overrides) -> CitationAlias:
    return CitationAlias(id=alias_id, document_id=overrides.pop("document_id", "doc-1"), prefix=prefix, pattern=pattern, **overrides)


def test_higher_priority_wins_contested_span():
    low = make_alias("x", "X", r"(\d+)", priority=1)
    high = make_alias("ccc", "CCC", r"CCC (\d+)", priority=10)
    matches = find_matches("See CCC 17 today", [low, high])
    assert len(matches) == 1
    assert matches[0].alias.id == "ccc"
    assert (matches[0].match, matches[0].start, matches[0].end) == ("CCC 17", 4, 10)
    assert matches[0].reference == "17"


def test_priority_ties_keep_declaration_order():
    first = make_alias("first", "A", r"(\d+)")
    second = make_alias("second", "B", r"N(\d+)")
    matches = find_matches("N42", [first, second])
    assert [match.alias.id for match in matches] == ["first"]
    assert matches[0].match == "42"


def test_lower_priority_keeps_uncontested_spans():
    low = make_alias("x", "X", r"(\d+)", priority=1)
    high = make_alias("ccc", "CCC", r"CCC (\d+)", priority=10)
    matches = find_matches("CCC 17 and 99", [low, high])
    assert [(match.alias.id, match.match) for match in matches] == [("ccc", "CCC 17"), ("x", "99")]


def test_matches_never_overlap():
    aliases = [
        make_alias("a", "A", r"CCC \d+", priority=3),
        make_alias("b", "B", r"\d+ and", priority=2),
        make_alias("c", "C", r"and \d+", priority=2),
        make_alias("d", "D", r"\d", priority=0),
    ]
    matches = find_matches("CCC 12 and 14 and CCC 7", aliases)
    for left, right in itertools.combinations(matches, 2):
        assert not (left.start < right.end and right.start < left.end)
    assert [match.start for match in matches] == sorted(match.start for match in matches)


def test_adjacent_spans_do_not_overlap():
    aliases = [make_alias("a", "A", r"ab", priority=1), make_alias("b", "B", r"cd")]
    assert [match.match for match in find_matches("abcd", aliases)] == ["ab", "cd"]


def test_zero_length_matches_are_ignored():
    assert find_matches("abc", [make_alias("a", "A", r"\d*")]) == []


def test_paragraph_reference_and_range():
    alias = alias_from_preset("ccc", "doc-1", "catechism")
    (match,) = find_matches("as taught in CCC 17-20.", [alias])
    assert match.reference == "17"
    assert match.range_start == "17"
    assert match.range_end == "20"


def test_paragraph_reference_without_range():
    alias = alias_from_preset("ccc", "doc-1", "catechism")
    (match,) = find_matches("ccc §27", [alias])
    assert match.reference == "27"
    assert match.range_start is None
    assert match.range_end is None


def test_section_reference_joins_groups():
    alias = alias_from_preset("st", "doc-2", "summa")
    matches = find_matches("ST I.2.3 and ST II-II.4.1", [alias])
    assert [match.reference for match in matches] == ["I.2.3", "II-II.4.1"]


def test_chapter_verse_reference():
    alias = alias_from_preset("conf", "doc-3", "confessions")
    (match,) = find_matches("Augustine, Conf. IV.12", [alias])
    assert match.reference == "IV.12"


def test_custom_reference_uses_group_index():
    alias = make_alias("ep", "Ep", r"Ep\.?\s*(\d+):(\d+)", number_extractor=NumberExtractor.CUSTOM, custom_group_index=2)
    (match,) = find_matches("Ep. 12:5", [alias])
    assert match.reference == "5"


def test_custom_reference_defaults_to_first_group():
    alias = make_alias("ep", "Ep", r"Ep\.?\s*(\d+):(\d+)", number_extractor=NumberExtractor.CUSTOM)
    (match,) = find_matches("Ep. 12:5", [alias])
    assert match.reference == "12"


def test_invalid_pattern_is_skipped_with_warning():
    broken = make_alias("broken", "B", r"CCC (\d+", priority=5)
    good = make_alias("good", "G", r"G(\d+)")
    scan = scan_citations("G1 CCC 2", [broken, good])
    assert [match.alias.id for match in scan.matches] == ["good"]
    assert len(scan.warnings) == 1
    assert (scan.warnings[0].alias_id, scan.warnings[0].reason) == ("broken", "invalid")


def test_long_pattern_is_skipped_with_warning():
    scan = scan_citations("CCC 1", [make_alias("long", "L", r"CCC (\d+)")], max_pattern_length=5)
    assert scan.matches == []
    assert scan.warnings[0].reason == "too_long"


def test_catastrophic_pattern_times_out_with_warning():
    slow = make_alias("slow", "S", r"(a|aa)+$", priority=1)
    good = make_alias("good", "G", r"G(\d+)")
    started = time.monotonic()
    scan = scan_citations("G3 " + "a" * 40 + "!", [slow, good], timeout_seconds=0.05)
    assert time.monotonic() - started < 1.0
    assert [match.reference for match in scan.matches] == ["3"]
    assert [(warning.alias_id, warning.reason) for warning in scan.warnings] == [("slow", "timeout")]


def test_match_cap_reports_truncated_scan(monkeypatch):
    monkeypatch.setattr(aliases_module, "MAX_MATCHES_PER_ALIAS", 2)
    alias = make_alias("n", "N", r"N(\d+)")
    scan = scan_citations("N1 N2 N3", [alias])
    assert [match.reference for match in scan.matches] == ["1", "2"]
    assert [(warning.alias_id, warning.reason) for warning in scan.warnings] == [("n", "truncated")]
    assert scan_citations("N1 N2", [alias]).warnings == []


def test_is_citation_text():
    alias = alias_from_preset("ccc", "doc-1", "catechism")
    assert is_citation_text(" CCC 17 ", [alias])
    assert not is_citation_text("see CCC 17", [alias])
    assert not is_citation_text("nothing", [alias])


def test_validate_alias_errors():
    with pytest.raises(ValueError, match="alias_prefix_required"):
        validate_alias(make_alias("a", " ", r"\d+"))
    with pytest.raises(ValueError, match="alias_pattern_required"):
        validate_alias(make_alias("a", "A", ""))
    with pytest.raises(ValueError, match="alias_pattern_too_long"):
        validate_alias(make_alias("a", "A", r"\d+" * 10), max_pattern_length=5)
    with pytest.raises(ValueError, match="alias_pattern_invalid"):
        validate_alias(make_alias("a", "A", r"(\d+"))
    with pytest.raises(ValueError, match="alias_custom_group_index_negative"):
        validate_alias(make_alias("a", "A", r"(\d+)", number_extractor=NumberExtractor.CUSTOM, custom_group_index=-1))
    with pytest.raises(ValueError, match="alias_custom_group_index_requires_custom_extractor"):
        validate_alias(make_alias("a", "A", r"(\d+)", custom_group_index=1))
    with pytest.raises(ValueError, match="alias_priority_invalid"):
        validate_alias(make_alias("a", "A", r"(\d+)", priority=None))
    with pytest.raises(ValueError, match="alias_display_format_invalid"):
        validate_alias(make_alias("a", "A", r"(\d+)", display_format=None))


def test_presets():
    assert get_preset("catechism").default_prefix == "CCC"
    assert get_preset("unknown") is None
    alias = alias_from_preset("a", "doc-1", "generic", prefix="Aug", pattern=r"Aug (\d+)", priority=3)
    assert (alias.prefix, alias.pattern, alias.priority) == ("Aug", r"Aug (\d+)", 3)
    with pytest.raises(ValueError, match="unknown_citation_preset"):
        alias_from_preset("a", "doc-1", "hymnal")


def test_citation_formatting_helpers():
    assert default_citation_prefix(SourceType.CATECHISM, "Catechism of the Catholic Church") == "CCC"
    assert default_citation_prefix(SourceType.TREATISE, "On the Trinity") == "On the Trinity"
    assert format_citation_range("CCC", 17) == "CCC 17"
    assert format_citation_range("CCC", 17, 17) == "CCC 17"
    assert format_citation_range("CCC", 17, 20) == "CCC 17-20"
