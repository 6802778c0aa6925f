import pytest

from scroll.structure import classify_line, split_compound_line
from scroll.types import Alignment, StructuralLevel, alignment_for


@pytest.mark.parametrize(
    ("line", "level"),
    [
        ("IN BRIEF", StructuralLevel.BRIEF),
        ("PART ONE", StructuralLevel.PART),
        ("PART II: THE CELEBRATION", StructuralLevel.PART),
        ("BOOK III", StructuralLevel.BOOK),
        ("ARTICLE 3", StructuralLevel.ARTICLE),
        ("SECTION TWO", StructuralLevel.SECTION),
        ("Chapter IV.", StructuralLevel.CHAPTER),
        ("CHAPTER 12", StructuralLevel.CHAPTER),
        ("IV. The Creeds", StructuralLevel.ROMAN),
        ("PROLOGUE", StructuralLevel.PREFACE),
        ("THE PROFESSION OF FAITH", StructuralLevel.SECTION),
    ],
)
def test_classify_line_levels(line, level):
    assert classify_line(line) == (level, line)


def test_classify_line_trims_content():
    assert classify_line("   PART ONE  ") == (StructuralLevel.PART, "PART ONE")


@pytest.mark.parametrize(
    "line",
    [
        "",
        "   ",
        "1 First paragraph.",
        "In the beginning was the Word.",
        "Part in the divine life is offered to all.",
        "AB",
        "Chapters follow one another.",
    ],
)
def test_classify_line_rejects_prose(line):
    assert classify_line(line) is None


def test_classify_line_is_stable_across_calls():
    results = {classify_line("ARTICLE 7") for _ in range(5)}
    assert results == {(StructuralLevel.ARTICLE, "ARTICLE 7")}


def test_in_brief_wins_over_all_caps_fallback():
    assert classify_line("IN BRIEF")[0] == StructuralLevel.BRIEF


def test_alignment_is_a_pure_lookup():
    centered = {
        StructuralLevel.BOOK,
        StructuralLevel.PART,
        StructuralLevel.SECTION,
        StructuralLevel.ARTICLE,
        StructuralLevel.CHAPTER,
    }
    for level in StructuralLevel:
        expected = Alignment.CENTER if level in centered else Alignment.LEFT
        assert alignment_for(level) == expected


def test_split_in_brief_and_article():
    assert split_compound_line("IN BRIEF ARTICLE 3") == ["IN BRIEF", "ARTICLE 3"]


def test_split_text_before_in_brief():
    assert split_compound_line("the end of the section IN BRIEF 1 Summary.") == [
        "the end of the section",
        "IN BRIEF",
        "1 Summary.",
    ]


def test_split_roman_marker():
    assert split_compound_line("closing words II. The Second Part") == [
        "closing words",
        "II.",
        "The Second Part",
    ]


def test_split_leaves_unmatched_line_unchanged():
    line = "An ordinary line with nothing to split."
    assert split_compound_line(line) == [line]


def test_split_does_not_split_lowercase_prose():
    line = "the article 5 of the law in brief says nothing"
    assert split_compound_line(line) == [line]


def test_split_preserves_visible_characters():
    line = "Summary of faith IN BRIEF ARTICLE 12 The Creed   IV. Prayer"
    parts = split_compound_line(line)
    assert "".join(parts).replace(" ", "") == line.replace(" ", "")
    assert all(part for part in parts)
