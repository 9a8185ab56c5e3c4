"""
Welcome workspace for Atelier.

This module provides the content loaded into an empty store on first start:
a guide note, a sample playground and one sub-project.
"""

import json
from datetime import datetime, timezone
from typing import Any, List

from .base import BaseImporter


def _todo(checked: bool, text: str) -> str:
    return json.dumps({"checked": checked, "text": text}, separators=(",", ":"))


def _code(language: str, code: str) -> str:
    return json.dumps({"language": language, "code": code}, separators=(",", ":"))


class SeedImporter(BaseImporter):
    """
    Importer that returns the built-in welcome workspace.
    """

    def get_records(self) -> List[Any]:
        """
        Return the welcome projects as serialized records.

        Returns:
            Fresh records on every call, timestamped now
        """
        created_at = datetime.now(timezone.utc).isoformat()

        guide_blocks = [
            {"id": "block_1", "type": "HEADING", "content": "Welcome to Atelier!"},
            {
                "id": "block_2",
                "type": "TEXT",
                "content": (
                    "Atelier is a personal workshop for notes and code experiments. "
                    "Everything you change is saved automatically."
                ),
            },
            {"id": "block_3", "type": "HEADING", "content": "Core Features Checklist"},
            {"id": "block_4_1", "type": "TODO", "content": _todo(True, "**Hierarchical Projects:** Organize your work with nested folders.")},
            {"id": "block_4_2", "type": "TODO", "content": _todo(True, "**Rich Notes:** Write using Markdown.")},
            {"id": "block_4_3", "type": "TODO", "content": _todo(True, "**Code Playgrounds:** Experiment with live HTML, CSS, and JS.")},
            {"id": "block_4_4", "type": "TODO", "content": _todo(True, "**Reordering:** Move blocks around within a note.")},
            {"id": "block_4_5", "type": "TODO", "content": _todo(True, "**Import & Export:** Back up and share your projects.")},
            {"id": "block_5", "type": "HEADING", "content": "Code Blocks & Playgrounds"},
            {
                "id": "block_6",
                "type": "TEXT",
                "content": (
                    "**Code Blocks** like the one below hold static snippets in a chosen language. "
                    "For runnable code, create a **New Playground**."
                ),
            },
            {
                "id": "block_7",
                "type": "CODE",
                "content": _code(
                    "python",
                    "# This is a Python code block\n"
                    "def fibonacci(n):\n"
                    "    a, b = 0, 1\n"
                    "    while a < n:\n"
                    "        print(a, end=' ')\n"
                    "        a, b = b, a + b\n"
                    "\n"
                    "fibonacci(1000)",
                ),
            },
            {"id": "block_8", "type": "HEADING", "content": "Backups and Sharing"},
            {
                "id": "block_9",
                "type": "TEXT",
                "content": (
                    "Export a project to save it, with all of its sub-projects, as a JSON file. "
                    "Importing that file adds a copy of the projects to any workspace."
                ),
            },
        ]

        return [
            {
                "id": "proj_1",
                "name": "Welcome to Atelier",
                "parentId": None,
                "canvases": [
                    {
                        "id": "canvas_1",
                        "title": "Getting Started Guide",
                        "type": "NOTE",
                        "createdAt": created_at,
                        "isPinned": True,
                        "blocks": guide_blocks,
                    },
                    {
                        "id": "canvas_playground_1",
                        "title": "My First Playground",
                        "type": "PLAYGROUND",
                        "createdAt": created_at,
                        "isPinned": False,
                        "playgroundContent": {
                            "html": "<h1>Hello, Playground!</h1>\n<div id=\"root\"></div>",
                            "css": "body { font-family: sans-serif; color: #333; }\nh1 { color: #007aff; }",
                            "js": (
                                "const root = document.getElementById(\"root\");\n"
                                "console.log(\"Logging to the custom console!\");\n"
                                "root.textContent = \"Hello from JavaScript!\";"
                            ),
                        },
                    },
                ],
            },
            {
                "id": "proj_2",
                "name": "Web Development Snippets",
                "parentId": "proj_1",
                "canvases": [],
            },
        ]
