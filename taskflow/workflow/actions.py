"""
Action dispatch for workflow tags.

Dispatch never touches the store. It only says what should happen for a tag:
trigger one of the MCP prompts, acknowledge a to-do, or leave the tag alone.
The engine removes tags whose action is removable.
"""
from dataclasses import dataclass
from typing import Optional, Union

from taskflow.workflow.tags import ACTION_TAGS, TagKind

ACTION_PERSONA_SET = "persona_set"
ACTION_PROMPT_TRIGGERED = "prompt_triggered"
ACTION_ADDED_TO_TODO = "added_to_todo"
ACTION_UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class PromptTrigger:
    """An external prompt-driven analysis step should handle the tag."""

    prompt_id: str
    action: str = ACTION_PROMPT_TRIGGERED
    removable: bool = True

    def describe(self, preview: bool) -> str:
        if preview:
            return f"Would trigger prompt '{self.prompt_id}'"
        return f"Prompt triggered - see MCP prompt '{self.prompt_id}'"


@dataclass(frozen=True)
class ListAppend:
    """Administrative tag: acknowledged, no prompt and no code."""

    action: str = ACTION_ADDED_TO_TODO
    removable: bool = True
    prompt_id: Optional[str] = None

    def describe(self, preview: bool) -> str:
        if preview:
            return "Would add to todo list"
        return "Add to todo list only - no implementation"


@dataclass(frozen=True)
class Unrecognized:
    """Tag outside the vocabulary. Left on the task."""

    action: str = ACTION_UNRECOGNIZED
    removable: bool = False
    prompt_id: Optional[str] = None

    def describe(self, preview: bool) -> str:
        return "Not a recognized workflow tag"


ActionSpec = Union[PromptTrigger, ListAppend, Unrecognized]

PROMPT_FOR_KIND = {
    TagKind.INTERROGATE: "interrogate_task",
    TagKind.EXPAND: "expand_task",
    TagKind.ESTIMATE: "estimate_task",
    TagKind.CRITIQUE: "critique_task",
    TagKind.USER_STORIES: "generate_user_stories",
    TagKind.REWRITE: "rewrite_task",
    TagKind.CODE: "prepare_for_coding",
    TagKind.CONFIRM: "confirm_implementation",
}


def resolve_action(kind: TagKind) -> ActionSpec:
    """
    Resolve a tag kind to its action.

    Persona tags are handled by the engine before dispatch and resolve to
    ``Unrecognized`` here.
    """
    if kind in PROMPT_FOR_KIND:
        return PromptTrigger(PROMPT_FOR_KIND[kind])
    if kind is TagKind.TODO:
        return ListAppend()
    return Unrecognized()

# Action words accepted as a batch tag filter
ALLOWED_TAG_FILTERS = ACTION_TAGS
