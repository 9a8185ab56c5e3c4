"""
Conversion between workspace models and their JSON text form.

The same shape is used for the stored workspace and for export documents:
a JSON list of project records, each embedding its canvases and blocks.
"""

import json
from typing import Any, List, Sequence, Union

from pydantic import TypeAdapter

from .workspace import Project

_projects_adapter = TypeAdapter(List[Project])


def projects_to_records(projects: Sequence[Project]) -> List[dict]:
    """Plain JSON-compatible records using the serialized field names."""
    return [project.model_dump(mode="json", by_alias=True) for project in projects]


def dump_projects(projects: Sequence[Project], indent: Union[int, None] = None) -> bytes:
    """Serialize projects to UTF-8 JSON bytes."""
    text = json.dumps(projects_to_records(projects), indent=indent, ensure_ascii=False)
    return text.encode("utf-8")


def load_projects(records: Any) -> List[Project]:
    """
    Validate already-decoded records into projects.

    Raises:
        pydantic.ValidationError: if the records do not match the workspace schema
    """
    return _projects_adapter.validate_python(records)


def parse_json(data: Union[bytes, str]) -> Any:
    """
    Decode JSON text or bytes.

    Raises:
        ValueError: if the data is not valid JSON
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)
