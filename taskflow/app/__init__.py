"""
Application factory.
"""
from .factory import create_app, setup_logging

__all__ = ["create_app", "setup_logging"]
