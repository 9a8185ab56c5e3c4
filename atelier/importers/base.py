"""
Base importer interface for Atelier.

This module defines the interface for sources of workspace documents.
"""

from abc import ABC, abstractmethod
from typing import Any, List


class BaseImporter(ABC):
    """
    Abstract base class for workspace document sources.

    An importer produces decoded project records in the serialized document
    shape. It does not validate them; the workspace import operation does.
    """

    @abstractmethod
    def get_records(self) -> List[Any]:
        """
        Retrieve the project records from the source.

        Returns:
            List of project records (dicts with id, name, parentId, canvases)
        """
        pass
