"""
MCP prompts - one per workflow action that needs an agent's analysis.

Rendering a prompt fetches the task (and its cached images) and embeds a
task-details header in the instructions. The prompts tell the agent which tool
saves the result. Only ``prepare_for_coding`` asks the agent to write code.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from taskflow.models.task_models import Task
from taskflow.services.image_service import ImageService
from taskflow.storage.interface import TaskStore

logger = logging.getLogger(__name__)

PERSONA_TEMPLATE = "You are {persona}. Approach this task from that professional perspective.\n\n"

_SAVE_AS_COMMENT = (
    "SAVE THE RESULT: when you are done, call the add_comment tool with task_id "
    "'{task_id}' and your full {what} as the comment. Processing the '{tag}' tag is "
    "not complete until the comment is saved."
)

_EXPLAIN = (
    "Then tell the user what you found and why it matters. Do not only report that "
    "the {target} was saved."
)

_TEMPLATES: Dict[str, str] = {
    "interrogate_task": """You are helping to clarify the requirements of a task.

{task_details}

What to do:
1. Read the task carefully, including any images listed above.
2. Ask 3-5 specific questions about success criteria, technical constraints, user expectations, integration points or the implementation approach.
3. For every question, say why you are asking it.
4. Critique the current description: what is unclear or missing.

Format:

## Questions
1. <question> - **Why:** <reason>

## Critique
<what is unclear, missing or could be improved>

""" + _SAVE_AS_COMMENT.format(task_id="{task_id}", what="analysis", tag="interrogate") + "\n\n"
        + _EXPLAIN.format(target="comment") + " Recommend the next step (for example, expand once the questions are answered).",

    "expand_task": """You are adding the detail a task needs before it can be implemented.

{task_details}

What to do:
1. Work out what is missing for a successful implementation.
2. Add technical detail: APIs or libraries, data structures, UI components, file paths.
3. Add clear acceptance criteria.
4. List edge cases.
5. Suggest a testing approach.

Write a complete description with the sections Goal, Technical Approach, Acceptance Criteria, Edge Cases and Testing, detailed enough to implement without guessing.

""" + _SAVE_AS_COMMENT.format(task_id="{task_id}", what="expanded description", tag="expand") + "\n\n"
        + _EXPLAIN.format(target="comment") + " Say whether the task is ready for the 'code' tag or needs a critique first.",

    "critique_task": """{task_details}

What to do:
1. Point out ambiguities and missing information.
2. Identify technical issues and risks.
3. Suggest improvements to the approach.
4. Rate complexity from 1 (simple) to 5 (very complex).
5. Outline the implementation steps.

Be constructive and specific.

Format:

## Analysis
<your assessment>

## Issues & Risks
- <concern>

## Suggested Improvements
- <suggestion>

## Complexity: <1-5>

## Implementation Steps
1. <step>

""" + _SAVE_AS_COMMENT.format(task_id="{task_id}", what="critique", tag="critique") + "\n\n"
        + _EXPLAIN.format(target="comment") + " If you were given a persona, explain how that perspective shaped the critique.",

    "generate_user_stories": """Write user stories for this task.

{task_details}

What to do:
1. Write 2-4 user stories of the form "As a <user>, I want <goal> so that <benefit>".
2. Cover different users and scenarios.
3. Give each story an acceptance line.

Format:

## User Stories

1. **As a** <user>, **I want** <goal> **so that** <benefit>
   - Acceptance: <what done looks like>

SAVE THE RESULT: append the stories to the task description. Call the update_task tool with task_id '{task_id}' and append_description set to "\\n\\n---\\n\\n" followed by your stories. Do not replace the existing description. Processing the 'user stories' tag is not complete until the description is updated.

""" + _EXPLAIN.format(target="description") + " Explain which perspectives the stories cover and how they sharpen the acceptance criteria.",

    "rewrite_task": """Rewrite this task so it is clear and actionable.

{task_details}

What to do:
1. Use plain, actionable language and remove ambiguity.
2. Keep it short but complete.
3. Make it implementable.

Format:

## Goal
<what we want and why>

## Approach
<how, with concrete steps and technologies>

## Acceptance Criteria
- <testable criterion>

## Notes
<extra context or constraints>

SAVE THE RESULT: call the update_task tool with task_id '{task_id}' and description set to your rewrite. This replaces the current description. Processing the 'rewrite' tag is not complete until the description is updated.

""" + _EXPLAIN.format(target="description") + " Explain what was unclear before and which assumptions you made.",

    "estimate_task": """Estimate the effort and refactoring this task needs.

{task_details}

What to do:
1. Assess complexity and scope.
2. Size the work: Small, Medium, Large or Extra Large.
3. Give a time range in hours or days.
4. Note refactoring opportunities, technical debt and architectural concerns.
5. List risks.

Consider how many files and components are affected, testing needs and integration complexity.

Format:

## Effort Estimate
**Size:** <size>
**Time Range:** <range>

## Scope Analysis
<what needs to be done>

## Refactoring Opportunities
- <opportunity>

## Technical Considerations
- <note>

## Risks & Complexities
- <risk>

## Recommendation
<suggested approach>

""" + _SAVE_AS_COMMENT.format(task_id="{task_id}", what="estimate", tag="estimate") + "\n\n"
        + _EXPLAIN.format(target="comment") + " Justify the estimate and say whether the task should be split.",

    "prepare_for_coding": """This task is tagged for implementation. Prepare it, then implement it.

{task_details}

What to do:
1. Check that everything needed to implement the task is present.
2. List the files that will change.
3. Identify dependencies and blockers.
4. Write a short implementation checklist.
5. Implement the task.

The 'code' tag is the only workflow tag that leads to writing code. Every other tag (interrogate, rewrite, expand, critique, user stories, estimate, to-do, confirm) is analysis only. After the short plan below, make the code changes with your editing tools.

Format for the plan:

## Implementation Plan

**Files to Change:**
- <path>

**Dependencies:**
- <blocker or prerequisite>

**Checklist:**
1. <step>

**Ready to code:** <Yes/No, and why if No>

While you work, tell the user which files you change and why, what approach you chose, and what remains if you are blocked. Finish by explaining how the change meets the acceptance criteria and how you verified it.""",

    "confirm_implementation": """Verify that this task has been implemented completely.

{task_details}

What to do:
1. Review what the task was meant to achieve.
2. Check that the implementation exists in the codebase.
3. Check every acceptance criterion.
4. Find gaps or unfinished work.
5. Judge whether it is ready for production.

Check that expected files exist, the code follows the requirements, tests and documentation are updated where needed, and there are no obvious bugs.

Format:

## Implementation Status
**Status:** <Complete / Incomplete / Partially Complete>

## What Was Done
- <item>

## Files Changed/Created
- <path>

## Verification Checklist
- [x] <requirement met>
- [ ] <requirement not met>

## Gaps / Missing Work
<open items>

## Production Readiness
<assessment>

## Recommendation
<mark as Done, or what must be finished>

""" + _SAVE_AS_COMMENT.format(task_id="{task_id}", what="verification report", tag="confirm") + "\n\n"
        + _EXPLAIN.format(target="comment") + " Give a short summary of the implementation's quality and whether the task can be marked Done.",
}

_DESCRIPTIONS = {
    "interrogate_task": "Ask clarifying questions about a task and critique its description",
    "expand_task": "Expand a task with technical detail, acceptance criteria and edge cases",
    "critique_task": "Critique a task, optionally from a persona's perspective",
    "generate_user_stories": "Generate user stories and append them to the task description",
    "rewrite_task": "Rewrite a task description for clarity",
    "estimate_task": "Estimate effort and refactoring needs for a task",
    "prepare_for_coding": "Plan and implement a task tagged for coding",
    "confirm_implementation": "Verify that a task has been fully implemented",
}

PROMPTS: List[Dict[str, Any]] = [
    {
        "name": name,
        "description": _DESCRIPTIONS[name],
        "arguments": [
            {"name": "task_id", "description": "Notion page ID of the task", "required": True},
            {
                "name": "persona",
                "description": "Optional persona, e.g. 'a security engineer' (set by a 'think like' tag)",
                "required": False,
            },
        ],
    }
    for name in _TEMPLATES
]


def format_task_details(task: Task, image_paths: List[Path]) -> str:
    """Render the task header embedded in every prompt."""
    if image_paths:
        images = f"{len(image_paths)} images downloaded to:\n" + "\n".join(f"- {p}" for p in image_paths)
    else:
        images = "None"
    return (
        f"## Task: {task.title}\n\n"
        f"**Status:** {task.status.value}\n"
        f"**Priority:** {task.priority.value}\n"
        f"**Tags:** {', '.join(task.tags)}\n"
        f"**URL:** {task.url or ''}\n\n"
        f"**Description:**\n{task.description or '(No description provided)'}\n\n"
        f"**Images:** {images}"
    )


def build_prompt_text(name: str, task: Task, image_paths: List[Path], persona: Optional[str] = None) -> str:
    """
    Build the text of a prompt for a task.

    Raises:
        ValueError: If the prompt name is unknown
    """
    template = _TEMPLATES.get(name)
    if template is None:
        raise ValueError(f"Unknown prompt: {name}")
    text = template.format(task_details=format_task_details(task, image_paths), task_id=task.id)
    if persona and persona.strip():
        text = PERSONA_TEMPLATE.format(persona=persona.strip()) + text
    return text


async def render_prompt(
    name: str,
    arguments: Dict[str, Any],
    store: TaskStore,
    images: Optional[ImageService] = None,
) -> Dict[str, Any]:
    """
    Render a prompt for ``prompts/get``.

    Fetches the task fresh from the store. Image download failures never fail
    the prompt.

    Raises:
        ValueError: If the prompt is unknown or task_id is missing
        StoreError: If the task cannot be read
    """
    if name not in _TEMPLATES:
        raise ValueError(f"Unknown prompt: {name}")
    task_id = arguments.get("task_id") or arguments.get("taskId")
    if not task_id:
        raise ValueError("task_id is required")

    task = await store.get_task(task_id)
    image_paths = await images.download_task_images(task) if images else []
    text = build_prompt_text(name, task, image_paths, arguments.get("persona"))
    logger.debug(f"Rendered prompt {name} for task {task_id}")

    return {
        "description": _DESCRIPTIONS[name],
        "messages": [
            {
                "role": "user",
                "content": {"type": "text", "text": text},
            }
        ],
    }
