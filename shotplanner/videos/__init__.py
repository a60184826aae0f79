from .importer import (
    ExpectedItem,
    ImportPreview,
    ImportSummary,
    collect_expected_items,
    plan_video_assignments,
    preview_video_import,
)
from .matcher import VideoMatchResult, match_video_files, parse_expected_stem, parse_video_stem
from .scan import VideoDirListing, VideoFileEntry, list_roots, scan_video_dir

__all__ = [
    "ExpectedItem",
    "ImportPreview",
    "ImportSummary",
    "collect_expected_items",
    "plan_video_assignments",
    "preview_video_import",
    "VideoMatchResult",
    "match_video_files",
    "parse_expected_stem",
    "parse_video_stem",
    "VideoDirListing",
    "VideoFileEntry",
    "list_roots",
    "scan_video_dir",
]
