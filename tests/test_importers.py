"""
Tests for workspace document sources and the command-line front end.
"""

import json

import pytest

from atelier.errors import InvalidFormat
from atelier.importers import JsonExportImporter, SeedImporter
from atelier.models.serialization import load_projects
from atelier.operations.tree import build_project_tree


def test_json_export_importer_reads_records(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps([{"id": "p", "name": "P", "parentId": None, "canvases": []}]), encoding="utf-8")

    records = JsonExportImporter(path).get_records()

    assert records[0]["name"] == "P"


def test_json_export_importer_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[{", encoding="utf-8")

    with pytest.raises(InvalidFormat):
        JsonExportImporter(path).get_records()


def test_json_export_importer_missing_file(tmp_path):
    with pytest.raises(InvalidFormat):
        JsonExportImporter(tmp_path / "missing.json").get_records()


def test_seed_workspace_is_valid():
    projects = load_projects(SeedImporter().get_records())

    roots = build_project_tree(projects)
    assert [node.project.name for node in roots] == ["Welcome to Atelier"]
    assert [child.project.name for child in roots[0].children] == ["Web Development Snippets"]

    guide, play = projects[0].canvases
    assert guide.is_pinned
    assert guide.blocks[0].content == "Welcome to Atelier!"
    assert play.type == "PLAYGROUND"


@pytest.fixture
def cli_config(tmp_path):
    """Config file pointing the store, log and exports into a temp directory."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "store:\n"
        f"  filename: \"{(tmp_path / 'cli.db').as_posix()}\"\n"
        "paths:\n"
        f"  log_file: \"{(tmp_path / 'cli.log').as_posix()}\"\n"
        f"  export_dir: \"{(tmp_path / 'exports').as_posix()}\"\n"
        "persistence:\n"
        "  saving_dwell: 0.01\n"
        "  commit_quiet: 0.01\n",
        encoding="utf-8",
    )
    return str(config_path)


def test_cli_create_export_import(cli_config, tmp_path, capsys):
    from main import main

    main(["--config", cli_config, "create", "Research"])
    out = capsys.readouterr().out
    assert "Created project Research" in out

    main(["--config", cli_config, "tree"])
    out = capsys.readouterr().out
    assert "- Welcome to Atelier [proj_1] (2 canvases)" in out
    assert "  - Web Development Snippets [proj_2] (0 canvases)" in out
    assert "Research" in out

    main(["--config", cli_config, "export", "proj_1"])
    export_path = tmp_path / "exports" / "atelier-export-welcome_to_atelier.json"
    assert export_path.exists()
    assert len(json.loads(export_path.read_text(encoding="utf-8"))) == 2

    main(["--config", cli_config, "import", str(export_path)])
    out = capsys.readouterr().out
    assert "2 project(s) imported successfully!" in out

    main(["--config", cli_config, "tree"])
    out = capsys.readouterr().out
    assert out.count("Welcome to Atelier") == 2


def test_cli_reports_errors(cli_config, capsys):
    from main import main

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", cli_config, "move", "proj_1", "--parent", "proj_2"])

    assert excinfo.value.code == 1
    assert "Cannot move" in capsys.readouterr().out
