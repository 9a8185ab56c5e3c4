#!/usr/bin/env python3
"""
Atelier - command-line front end.

Opens the workspace store, applies one command through the workspace
controller and exits. Every change is written to the store before the
command returns.
"""

import logging
import sys
import argparse
from pathlib import Path
from typing import List, Optional

from atelier.config import ConfigManager, config
from atelier.controller import WorkspaceController
from atelier.database import DatabaseManager
from atelier.errors import AtelierError
from atelier.models import CanvasType
from atelier.operations.canvases import canvas_preview
from atelier.operations.tree import ProjectNode, export_filename


def setup_logging(settings: ConfigManager = config):
    """Configure logging for the application."""
    level = getattr(logging, settings.get("logging.level", "INFO").upper())
    format_str = settings.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = settings.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def format_tree(nodes: List[ProjectNode], level: int = 0) -> List[str]:
    """
    Render the project tree as indented lines.

    Args:
        nodes: Tree nodes to render
        level: Indentation depth of ``nodes``

    Returns:
        One line per project: name, id and canvas count
    """
    lines = []
    for node in nodes:
        project = node.project
        count = len(project.canvases)
        lines.append(f"{'  ' * level}- {project.name} [{project.id}] ({count} canvas{'es' if count != 1 else ''})")
        lines.extend(format_tree(node.children, level + 1))
    return lines


def resolve_export_path(controller: WorkspaceController, project_id: str, output: Optional[str], settings: ConfigManager = config) -> Path:
    """
    Determine where an export should be written.

    An explicit output path wins; otherwise the file goes into the configured
    export directory under a name derived from the project name.
    """
    if output:
        return Path(output)
    project = controller.get_project(project_id)
    return Path(settings.export_directory) / export_filename(project)


def run_command(controller: WorkspaceController, args, settings: ConfigManager = config) -> None:
    """Apply one parsed command to the workspace."""
    if args.command == "tree":
        lines = format_tree(controller.project_tree())
        print("\n".join(lines) if lines else "Workspace is empty.")

    elif args.command == "create":
        project = controller.create_project(parent_id=args.parent, name=args.name)
        print(f"Created project {project.name} [{project.id}]")

    elif args.command == "rename":
        controller.get_project(args.project_id)
        controller.rename_project(args.project_id, args.name)
        print(f"Renamed project {args.project_id} to {args.name}")

    elif args.command == "delete":
        removed = controller.delete_project(args.project_id)
        if not removed:
            controller.get_project(args.project_id)
        print(f"Deleted {len(removed)} project(s)")

    elif args.command == "move":
        controller.move_project(args.project_id, args.parent)
        print(f"Moved project {args.project_id} under {args.parent or 'the root'}")

    elif args.command == "export":
        document = controller.export_project(args.project_id)
        path = resolve_export_path(controller, args.project_id, args.output, settings)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(document)
        logging.info(f"Wrote export file: {path}")
        print(f"Exported to {path}")

    elif args.command == "import":
        imported = controller.import_file(args.path)
        print(f"{len(imported)} project(s) imported successfully!")

    elif args.command == "add-canvas":
        controller.select_project(args.project_id)
        canvas = controller.add_canvas(CanvasType(args.type.upper()))
        print(f"Added {canvas.type} canvas {canvas.title} [{canvas.id}]")

    elif args.command == "canvases":
        canvases = controller.list_canvases(args.project_id, term=args.search or "")
        if not canvases:
            print(f"No canvases matched \"{args.search}\"." if args.search else "This project is empty.")
        for canvas in canvases:
            pin = "*" if canvas.is_pinned else " "
            print(f"{pin} {canvas.title} [{canvas.id}] - {canvas_preview(canvas)}")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Atelier - personal workspace of projects, notes and playgrounds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py tree                                   # Show the project tree
  python main.py create "Research" --parent proj_1      # Create a sub-project
  python main.py export proj_1 --output backup.json     # Export a project and its sub-projects
  python main.py import backup.json                     # Import a copy under fresh ids
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to a configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Atelier 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("tree", help="Show the project tree")

    create = subparsers.add_parser("create", help="Create a project")
    create.add_argument("name", help="Project name")
    create.add_argument("--parent", help="Parent project id")

    rename = subparsers.add_parser("rename", help="Rename a project")
    rename.add_argument("project_id")
    rename.add_argument("name")

    delete = subparsers.add_parser("delete", help="Delete a project and all of its sub-projects")
    delete.add_argument("project_id")

    move = subparsers.add_parser("move", help="Move a project under another one")
    move.add_argument("project_id")
    move.add_argument("--parent", help="New parent id (omit to make it a root)")

    export = subparsers.add_parser("export", help="Export a project and its sub-projects")
    export.add_argument("project_id")
    export.add_argument("--output", help="Output file path")

    importer = subparsers.add_parser("import", help="Import an exported project file")
    importer.add_argument("path")

    add_canvas = subparsers.add_parser("add-canvas", help="Add a note or playground to a project")
    add_canvas.add_argument("project_id")
    add_canvas.add_argument("--type", choices=["note", "playground"], default="note")

    canvases = subparsers.add_parser("canvases", help="List a project's canvases")
    canvases.add_argument("project_id")
    canvases.add_argument("--search", help="Only show canvases matching this text")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)
    settings = ConfigManager(args.config) if args.config else config
    setup_logging(settings)

    try:
        with DatabaseManager(settings.database_filename) as db:
            controller = WorkspaceController.open(
                db,
                workspace_key=settings.workspace_key,
                saving_dwell=settings.saving_dwell,
                commit_quiet=settings.commit_quiet,
                seed=settings.seed_on_first_run,
            )
            try:
                run_command(controller, args, settings)
            finally:
                controller.close()

    except AtelierError as e:
        logging.error(f"Command failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")


if __name__ == "__main__":
    main()
