"""
Todo List API package.

Exposes a FastAPI application (tasklist_api.main:app, or tasklist_api.main.create_app for
a fresh instance) serving a categorized, prioritized todo list and its browser client.
"""

__version__ = "1.0.0"
