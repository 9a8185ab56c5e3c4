"""
Identifier generation.

Ids are a kind prefix plus a random UUID4, checked against a set of ids
already in use so a freshly generated id can never shadow an existing one.
"""

import uuid
from typing import Iterable, Optional, Set

PROJECT_PREFIX = "proj"
CANVAS_PREFIX = "canvas"
BLOCK_PREFIX = "block"


class IdGenerator:
    """
    Generates unique ids and remembers every id it has handed out or been told about.
    """

    def __init__(self, taken: Optional[Iterable[str]] = None):
        self._taken: Set[str] = set(taken or ())

    def new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}_{uuid.uuid4().hex}"
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._taken
