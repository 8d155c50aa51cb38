"""
MCP tool definitions.

Each entry describes one tool: its name, a description written for the
calling agent, and its parameters. Parameters marked ``"optional": True`` are
left out of the JSON schema's ``required`` list.
"""
from taskflow.models.task_models import SETTABLE_STATUSES
from taskflow.workflow.actions import ALLOWED_TAG_FILTERS

MCP_FUNCTIONS = [
    {
        "name": "process_tasks",
        "description": "Process tasks that carry workflow tags. Tags on each task are walked in priority order: 'think like <persona>' first, then interrogate, rewrite, estimate, expand, critique, user stories, to-do, code and confirm. Each processed tag is removed from the task and the report names the MCP prompt to run for it (e.g. interrogate -> interrogate_task). Unrecognized tags are skipped and left on the task. Only the 'code' tag leads to writing code. Returns a report with one entry per task and per tag.\n\nERROR HANDLING:\n- Returns a report with message 'No tasks with workflow tags found' when nothing matched.\n- A failure removing one tag is reported as status 'error' for that tag; the remaining tags and tasks are still processed.\n- Invalid limit or tag_filter values return an error result.",
        "parameters": {
            "limit": {
                "type": "integer",
                "default": 10,
                "optional": True,
                "description": "Maximum number of tasks to process (default: 10).",
                "minimum": 1,
                "example": 10
            },
            "preview_only": {
                "type": "boolean",
                "default": False,
                "optional": True,
                "description": "Preview what would be processed without removing any tag. Also accepted as dry_run.",
                "example": True
            },
            "tag_filter": {
                "type": "string",
                "enum": list(ALLOWED_TAG_FILTERS),
                "optional": True,
                "description": "Only process this tag across all tasks. Persona tags are not processed when a filter is given.",
                "example": "rewrite"
            }
        }
    },
    {
        "name": "query_tasks",
        "description": "Query tasks from the Notion database. Without a status, returns tasks that carry workflow tags. With a status, returns tasks in that status (tagged tasks only unless has_tags is false). Read-only.",
        "parameters": {
            "status": {
                "type": "string",
                "enum": SETTABLE_STATUSES,
                "optional": True,
                "description": "Filter by task status.",
                "example": "Ready"
            },
            "has_tags": {
                "type": "boolean",
                "default": True,
                "optional": True,
                "description": "Only return tasks with workflow tags (default: true). Used together with status.",
                "example": True
            },
            "tag": {
                "type": "string",
                "optional": True,
                "description": "Only return tasks carrying this exact tag.",
                "example": "code"
            },
            "limit": {
                "type": "integer",
                "default": 100,
                "optional": True,
                "description": "Maximum number of tasks to return. Must be between 1 and 100 (default: 100).",
                "minimum": 1,
                "maximum": 100,
                "example": 20
            }
        }
    },
    {
        "name": "get_task",
        "description": "Get a single task with its properties, content blocks and rendered page content. Read-only.\n\nERROR HANDLING:\n- Returns an error result if the task does not exist or is not shared with the integration.",
        "parameters": {
            "task_id": {
                "type": "string",
                "description": "Notion page ID of the task.",
                "minLength": 1,
                "example": "1a2b3c4d-0000-0000-0000-000000000000"
            }
        }
    },
    {
        "name": "add_comment",
        "description": "Add a comment to a task. Used to save the output of interrogate, expand, critique, estimate and confirm prompts.",
        "parameters": {
            "task_id": {
                "type": "string",
                "description": "Notion page ID of the task.",
                "minLength": 1,
                "example": "1a2b3c4d-0000-0000-0000-000000000000"
            },
            "comment": {
                "type": "string",
                "description": "Comment text. Must not be empty.",
                "minLength": 1,
                "example": "## Questions\n1. ..."
            }
        }
    },
    {
        "name": "update_task",
        "description": "Update a task: replace or append to its description, change its status, or remove tags. Used to save the output of rewrite (replace description) and user stories (append to description) prompts.\n\nERROR HANDLING:\n- Returns an error result when no change is requested or when both description and append_description are given.\n- Returns an error result if the database has no Description or Content text property.",
        "parameters": {
            "task_id": {
                "type": "string",
                "description": "Notion page ID of the task.",
                "minLength": 1,
                "example": "1a2b3c4d-0000-0000-0000-000000000000"
            },
            "description": {
                "type": "string",
                "optional": True,
                "description": "New description. Replaces the current one."
            },
            "append_description": {
                "type": "string",
                "optional": True,
                "description": "Text appended verbatim to the current description. Include your own separator (e.g. \"\\n\\n---\\n\\n\")."
            },
            "status": {
                "type": "string",
                "enum": SETTABLE_STATUSES,
                "optional": True,
                "description": "New task status."
            },
            "remove_tags": {
                "type": "array",
                "items": {"type": "string"},
                "optional": True,
                "description": "Tags to remove from the task.",
                "example": ["rewrite"]
            }
        }
    },
]
