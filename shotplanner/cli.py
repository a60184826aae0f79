"""
shotplanner command line.

    shotplanner parse shotlist.md [--characters characters.md] [--save]
    shotplanner preview-videos <project_id> <dir>
    shotplanner import-videos <project_id> <dir>
    shotplanner export <project_id> --out queue.zip [--content ready] [--approval approved]
    shotplanner serve [--host 0.0.0.0] [--port 3001]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shotplanner.config.config import ensure_data_dirs, load_config
from shotplanner.export.queue import (
    APPROVAL_FILTERS,
    CONTENT_FILTERS,
    build_export_tasks,
    collect_export_items,
    filter_export_items,
    write_queue_zip,
)
from shotplanner.parsing import parse_all_markdown
from shotplanner.project.persistence import ProjectNotFoundError, ProjectRepository
from shotplanner.project.store import ProjectStore
from shotplanner.utils.logging_setup import configure_logging, log_context
from shotplanner.utils.timecode import format_timestamp
from shotplanner.videos.importer import preview_video_import
from shotplanner.videos.scan import scan_video_dir

console = Console()


def _repo(config: Dict[str, Any]) -> ProjectRepository:
    return ProjectRepository.open(config["projects_dir"])


def cmd_parse(args, config: Dict[str, Any]) -> int:
    shotlist = Path(args.shotlist).read_text(encoding="utf-8")
    characters = Path(args.characters).read_text(encoding="utf-8") if args.characters else None
    project = parse_all_markdown(shotlist, characters)

    table = Table(title=f"{project.name} ({project.bpm} BPM)")
    table.add_column("Section")
    table.add_column("Shot")
    table.add_column("Type")
    table.add_column("Time")
    table.add_column("Takes", justify="right")
    for section in project.sections:
        for shot in section.shots:
            table.add_row(
                section.name,
                shot.name,
                shot.type,
                f"{format_timestamp(shot.start_time)} - {format_timestamp(shot.end_time)}",
                str(len(shot.takes or [])),
            )
    console.print(table)

    if not project.sections:
        console.print("[yellow]No sections found; check the section banners.[/]")
    if args.output:
        Path(args.output).write_text(json.dumps(project.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]Wrote {args.output}[/]")
    if args.save:
        path = _repo(config).save(project)
        console.print(f"[green]Saved project {project.id} to {path}[/]")
    return 0


def cmd_preview_videos(args, config: Dict[str, Any]) -> int:
    project = _repo(config).load(args.project_id)
    listing = scan_video_dir(args.dir)
    preview = preview_video_import(project, listing.files)

    table = Table(title=f"{len(listing.files)} video(s), {preview.matched_count} matched to shots")
    table.add_column("Expected")
    table.add_column("File")
    for entry in preview.entries:
        table.add_row(entry.label, entry.file["filename"] if entry.file else "[dim]no match[/]")
    console.print(table)
    for f in preview.unmatched_files:
        console.print(f"[yellow]unmatched:[/] {f['filename']}")
    return 0


def cmd_import_videos(args, config: Dict[str, Any]) -> int:
    repo = _repo(config)
    store = ProjectStore(project=repo.load(args.project_id))
    listing = scan_video_dir(args.dir)
    summary = store.import_videos(listing.files)
    if summary.matched:
        repo.save(store.project)
    console.print(f"[green]Import complete: {summary.matched} videos matched[/]")
    for name in summary.unmatched:
        console.print(f"[yellow]unmatched:[/] {name}")
    return 0


def cmd_export(args, config: Dict[str, Any]) -> int:
    project = _repo(config).load(args.project_id)
    if args.items:
        item_ids: List[str] = args.items
    else:
        items = filter_export_items(collect_export_items(project), content=args.content, approval=args.approval)
        item_ids = [i.id for i in items]
    tasks = build_export_tasks(project, item_ids)
    if not tasks:
        console.print("[red]Nothing to export[/]")
        return 1
    write_queue_zip(
        tasks,
        args.out,
        images_dir=config["images_dir"],
        audio_dir=config["audio_dir"],
        compresslevel=int(config.get("zip_compression_level", 5)),
    )
    console.print(f"[green]Wrote {len(tasks)} task(s) to {args.out}[/]")
    return 0


def cmd_serve(args, config: Dict[str, Any]) -> int:
    from shotplanner.shotplanner_server import run_server

    console.print(Panel.fit(f"[bold cyan]shotplanner API[/bold cyan]\n[dim]{config['data_dir']}[/dim]", border_style="cyan"))
    run_server(config, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shotplanner", description="Plan music-video shots and export generation queues")
    parser.add_argument("--config", help="Path to a TOML config file")
    parser.add_argument("--data-dir", help="Override the data directory")
    subparsers = parser.add_subparsers(dest="command")

    parse_parser = subparsers.add_parser("parse", help="Parse a markdown shotlist")
    parse_parser.add_argument("shotlist", help="Shotlist markdown file")
    parse_parser.add_argument("--characters", help="Character-establishment markdown file")
    parse_parser.add_argument("--output", help="Write the project JSON here")
    parse_parser.add_argument("--save", action="store_true", help="Save into the project store")
    parse_parser.set_defaults(func=cmd_parse)

    preview_parser = subparsers.add_parser("preview-videos", help="Show how a folder of videos would be matched")
    preview_parser.add_argument("project_id")
    preview_parser.add_argument("dir")
    preview_parser.set_defaults(func=cmd_preview_videos)

    import_parser = subparsers.add_parser("import-videos", help="Assign a folder of videos to shots and takes")
    import_parser.add_argument("project_id")
    import_parser.add_argument("dir")
    import_parser.set_defaults(func=cmd_import_videos)

    export_parser = subparsers.add_parser("export", help="Write a generation queue ZIP")
    export_parser.add_argument("project_id")
    export_parser.add_argument("--out", default="queue.zip", help="Output ZIP path")
    export_parser.add_argument("--content", choices=CONTENT_FILTERS, default="all")
    export_parser.add_argument("--approval", choices=APPROVAL_FILTERS, default="any")
    export_parser.add_argument("--items", nargs="+", help="Explicit item ids (overrides filters)")
    export_parser.set_defaults(func=cmd_export)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host")
    serve_parser.add_argument("--port", type=int)
    serve_parser.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    _, config = load_config(args.config, overrides={"data_dir": args.data_dir})
    ensure_data_dirs(config)
    # CLI logging goes to the file; the console is for rich output.
    configure_logging(log_file=config["log_file"], level=config.get("log_level", "INFO"), enable_console=False)

    try:
        with log_context(operation=args.command, project_id=getattr(args, "project_id", None)):
            return args.func(args, config)
    except ProjectNotFoundError as e:
        console.print(f"[red]{e}[/]")
    except (FileNotFoundError, NotADirectoryError, ValueError) as e:
        console.print(f"[red]Error: {e}[/]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
