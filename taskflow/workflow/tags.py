"""
Tag vocabulary and priority ordering.

Tags are processed in phases:

1. Context setting: ``think like <persona>``
2. Task refinement: interrogate, rewrite, estimate, expand, critique, user stories
3. Action: to-do, code
4. Verification: confirm

Unknown tags sort after every known tag but are still walked (and skipped).
"""
from enum import Enum
from typing import Iterable, List, Optional

PERSONA_PREFIX = "think like "
UNKNOWN_TAG_RANK = 999


def normalize_tag(tag: str) -> str:
    """Trim and lowercase a tag for comparison."""
    return (tag or "").strip().lower()


def is_persona_tag(tag: str) -> bool:
    """Return True for ``think like <persona>`` tags."""
    return normalize_tag(tag).startswith(PERSONA_PREFIX)


class TagKind(Enum):
    """Closed vocabulary of workflow tags."""

    PERSONA = "think like"
    INTERROGATE = "interrogate"
    REWRITE = "rewrite"
    EXPAND = "expand"
    CRITIQUE = "critique"
    USER_STORIES = "user stories"
    ESTIMATE = "estimate"
    TODO = "to-do"
    CODE = "code"
    CONFIRM = "confirm"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_tag(cls, tag: str) -> "TagKind":
        """Map any tag string to its kind. Never raises."""
        if is_persona_tag(tag):
            return cls.PERSONA
        normalized = normalize_tag(tag)
        for kind in cls:
            if kind in (cls.PERSONA, cls.UNRECOGNIZED):
                continue
            if kind.value == normalized:
                return kind
        return cls.UNRECOGNIZED

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def processor(self) -> Optional[str]:
        return _PROCESSORS.get(self)


_RANKS = {
    TagKind.PERSONA: 1,
    TagKind.INTERROGATE: 2,
    TagKind.REWRITE: 3,
    # Sizing runs on the rewritten description, before it is expanded
    TagKind.ESTIMATE: 4,
    TagKind.EXPAND: 5,
    TagKind.CRITIQUE: 6,
    TagKind.USER_STORIES: 7,
    TagKind.TODO: 8,
    TagKind.CODE: 9,
    TagKind.CONFIRM: 10,
    TagKind.UNRECOGNIZED: UNKNOWN_TAG_RANK,
}

_PROCESSORS = {
    TagKind.PERSONA: "think-like",
    TagKind.INTERROGATE: "interrogate",
    TagKind.REWRITE: "rewrite",
    TagKind.EXPAND: "expand",
    TagKind.CRITIQUE: "critique",
    TagKind.USER_STORIES: "user-stories",
    TagKind.ESTIMATE: "estimate",
    TagKind.TODO: "todo",
    TagKind.CODE: "code",
    TagKind.CONFIRM: "confirm",
}

# Action words accepted as a batch tag filter
ACTION_TAGS = tuple(
    kind.value for kind in TagKind if kind not in (TagKind.PERSONA, TagKind.UNRECOGNIZED)
)


def tag_rank(tag: str) -> int:
    """
    Get the processing rank of a tag (lower runs earlier).

    Persona tags rank first regardless of their suffix; tags outside the
    vocabulary get ``UNKNOWN_TAG_RANK``.
    """
    return TagKind.from_tag(tag).rank


def extract_persona(tag: str) -> Optional[str]:
    """
    Extract the persona from a ``think like <persona>`` tag.

    The persona keeps its original case: ``"Think Like a Security Engineer"``
    gives ``"a Security Engineer"``. Returns None for non-persona tags.
    """
    if not is_persona_tag(tag):
        return None
    stripped = tag.strip()
    return stripped[len(PERSONA_PREFIX):].strip()


def sort_by_priority(tags: Iterable[str]) -> List[str]:
    """Return a new list of tags in processing order (stable for equal ranks)."""
    return sorted(tags, key=tag_rank)


def processor_for_tag(tag: str) -> Optional[str]:
    """Get the processor name for a tag, or None if the tag is not recognized."""
    return TagKind.from_tag(tag).processor


def is_valid_tag(tag: str) -> bool:
    """Return True if the tag is a persona tag or a known action tag."""
    return TagKind.from_tag(tag) is not TagKind.UNRECOGNIZED
