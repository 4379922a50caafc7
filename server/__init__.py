"""
Server package exposing the FastAPI app factory.
"""

from .app import create_app  # noqa: F401
