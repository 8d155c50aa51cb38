"""
Storage abstraction layer.
Provides the task store contract and its Notion implementation.
"""
from .interface import TaskStore
from .notion_store import NotionTaskStore
from .retry import RetryPolicy

__all__ = ['TaskStore', 'NotionTaskStore', 'RetryPolicy']
