"""Export of outlines as JSON path commands."""

from tabcut.io.export import as_command_path, commands_to_records, export_json, path_summary

__all__ = [
    "as_command_path",
    "commands_to_records",
    "export_json",
    "path_summary",
]
