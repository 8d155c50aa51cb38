"""
taskflow - MCP server for Notion task workflow automation.

Tasks in a Notion database carry workflow tags ("interrogate", "rewrite",
"code", "think like <persona>", ...). The workflow engine walks those tags in
priority order and tells the connected agent which prompt-driven step to run.
"""

__version__ = "1.0.0"
