"""Sources of workspace documents."""

from .base import BaseImporter
from .json_export import JsonExportImporter
from .seed import SeedImporter

__all__ = ["BaseImporter", "JsonExportImporter", "SeedImporter"]
