"""
Service layer - business logic, free of HTTP framework dependencies.
"""
from .task_service import TaskService
from .image_service import ImageService

__all__ = ["TaskService", "ImageService"]
