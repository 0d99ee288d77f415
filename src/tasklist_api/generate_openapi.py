"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

The schema is serialized to interfaces/openapi.json at the project root (or to the
path given on the command line) so that API clients and documentation tools can
consume a stable schema without running the server.

Usage:
    python -m tasklist_api.generate_openapi [OUTPUT_PATH]
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .main import create_app, openapi_tags
from .settings import get_settings

logger = logging.getLogger(__name__)

# <project_root>/src/tasklist_api/generate_openapi.py -> <project_root>/interfaces/openapi.json
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_OUTPUT = os.path.join(_PROJECT_ROOT, "interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the schema carries every tag declared in openapi_tags, without
    overriding tag definitions already present.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def build_schema() -> Dict[str, Any]:
    """Build the OpenAPI schema from a fresh application instance."""
    settings = get_settings()
    app = create_app(settings)
    schema = app.openapi()
    _ensure_tags(schema)
    return schema


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the OpenAPI schema file and return the written file path."""
    path = out_path or DEFAULT_OUTPUT
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_schema(), f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to: %s", path)
    return path


def main() -> None:
    generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)


if __name__ == "__main__":
    main()
