"""
Unit tests for tag vocabulary and priority ordering.
"""
import random

import pytest

from taskflow.workflow.tags import (
    TagKind,
    UNKNOWN_TAG_RANK,
    extract_persona,
    is_persona_tag,
    is_valid_tag,
    normalize_tag,
    processor_for_tag,
    sort_by_priority,
    tag_rank,
)


class TestTagKind:
    """Tests for TagKind.from_tag."""

    @pytest.mark.parametrize("tag,kind", [
        ("interrogate", TagKind.INTERROGATE),
        ("  Rewrite ", TagKind.REWRITE),
        ("EXPAND", TagKind.EXPAND),
        ("critique", TagKind.CRITIQUE),
        ("User Stories", TagKind.USER_STORIES),
        ("estimate", TagKind.ESTIMATE),
        ("to-do", TagKind.TODO),
        ("code", TagKind.CODE),
        ("confirm", TagKind.CONFIRM),
        ("think like a QA engineer", TagKind.PERSONA),
        ("Think Like X", TagKind.PERSONA),
    ])
    def test_known_tags(self, tag, kind):
        """Test vocabulary words map case-insensitively to their kind."""
        assert TagKind.from_tag(tag) is kind

    @pytest.mark.parametrize("tag", ["random", "", "todo", "think like", "coding", "think"])
    def test_unknown_tags(self, tag):
        """Test anything outside the vocabulary is UNRECOGNIZED."""
        assert TagKind.from_tag(tag) is TagKind.UNRECOGNIZED


class TestTagRank:
    """Tests for tag_rank."""

    def test_ranks(self):
        """Test the documented rank of each tag."""
        assert tag_rank("think like a designer") == 1
        assert tag_rank("interrogate") == 2
        assert tag_rank("rewrite") == 3
        assert tag_rank("estimate") == 4
        assert tag_rank("expand") == 5
        assert tag_rank("critique") == 6
        assert tag_rank("user stories") == 7
        assert tag_rank("to-do") == 8
        assert tag_rank("code") == 9
        assert tag_rank("confirm") == 10

    def test_known_ranks_are_distinct(self):
        """Test no two known kinds share a rank, so known tags never tie."""
        ranks = [kind.rank for kind in TagKind if kind is not TagKind.UNRECOGNIZED]
        assert len(set(ranks)) == len(ranks)

    def test_unknown_rank(self):
        """Test unknown tags rank after everything else."""
        assert tag_rank("random") == UNKNOWN_TAG_RANK == 999


class TestSortByPriority:
    """Tests for sort_by_priority."""

    EXPECTED = [
        "think like QA", "interrogate", "rewrite", "estimate", "expand",
        "critique", "user stories", "to-do", "code", "confirm",
    ]

    def test_any_input_order(self):
        """Test the processing order is the same for any shuffle of the tags."""
        rng = random.Random(42)
        for _ in range(20):
            tags = list(self.EXPECTED)
            rng.shuffle(tags)
            assert sort_by_priority(tags) == self.EXPECTED

    def test_unknown_last_and_stable(self):
        """Test unknown tags go last and equal ranks keep their relative order."""
        tags = ["zeta", "code", "alpha", "user stories", "estimate", "think like QA", "think like PM"]
        assert sort_by_priority(tags) == [
            "think like QA", "think like PM", "estimate", "user stories", "code", "zeta", "alpha",
        ]

    def test_estimate_before_user_stories_in_either_order(self):
        """Test estimate and user stories sort the same way whichever comes first."""
        assert sort_by_priority(["user stories", "estimate"]) == ["estimate", "user stories"]
        assert sort_by_priority(["estimate", "user stories"]) == ["estimate", "user stories"]

    def test_input_not_mutated(self):
        """Test sorting returns a new list."""
        tags = ["code", "interrogate"]
        result = sort_by_priority(tags)
        assert tags == ["code", "interrogate"]
        assert result is not tags

    def test_empty(self):
        """Test empty input gives empty output."""
        assert sort_by_priority([]) == []


class TestPersona:
    """Tests for persona helpers."""

    def test_extract_persona_preserves_case(self):
        """Test the persona keeps its original case."""
        assert extract_persona("Think Like a Security Engineer") == "a Security Engineer"

    def test_extract_persona_trims(self):
        """Test surrounding whitespace is trimmed."""
        assert extract_persona("  think like   QA  ") == "QA"

    def test_extract_persona_non_persona(self):
        """Test non-persona tags give None."""
        assert extract_persona("code") is None

    def test_is_persona_tag(self):
        """Test persona detection."""
        assert is_persona_tag("THINK LIKE a PM")
        assert not is_persona_tag("think")


class TestHelpers:
    """Tests for normalize_tag, is_valid_tag and processor_for_tag."""

    def test_normalize(self):
        """Test trimming and lowercasing."""
        assert normalize_tag("  To-Do ") == "to-do"

    def test_is_valid_tag(self):
        """Test validity covers persona and action tags only."""
        assert is_valid_tag("think like QA")
        assert is_valid_tag("Confirm")
        assert not is_valid_tag("random")

    def test_processor_for_tag(self):
        """Test processor names."""
        assert processor_for_tag("think like QA") == "think-like"
        assert processor_for_tag("user stories") == "user-stories"
        assert processor_for_tag("to-do") == "todo"
        assert processor_for_tag("random") is None
