"""
Importer for Atelier export files.

Reads a JSON export written by ``export`` (or by an older version of the
application) from disk.
"""

import logging
from pathlib import Path
from typing import Any, List, Union

from ..errors import InvalidFormat
from ..models.serialization import parse_json
from .base import BaseImporter


class JsonExportImporter(BaseImporter):
    """
    Loads project records from an exported JSON document.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the importer.

        Args:
            path: Path to the export file
        """
        self.path = Path(path)

    def get_records(self) -> List[Any]:
        """
        Read and decode the export file.

        Raises:
            InvalidFormat: if the file cannot be read or is not JSON
        """
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise InvalidFormat(f"Cannot read import file {self.path}: {e}") from e

        try:
            records = parse_json(data)
        except ValueError as e:
            raise InvalidFormat(f"Import file {self.path} is not valid JSON: {e}") from e

        logging.info(f"Read import file: {self.path}")
        return records
