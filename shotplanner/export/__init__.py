from .queue import (
    ExportItem,
    ExportTask,
    build_export_tasks,
    build_queue_manifest,
    collect_export_items,
    filter_export_items,
    write_queue_zip,
)

__all__ = [
    "ExportItem",
    "ExportTask",
    "build_export_tasks",
    "build_queue_manifest",
    "collect_export_items",
    "filter_export_items",
    "write_queue_zip",
]
