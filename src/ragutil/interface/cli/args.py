from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema: one subcommand per extraction or prompt
operation plus global diagnostic options. Provides the logic translating
the parsed namespace into configuration overrides.
"""

import argparse
from typing import Any, Dict, List, Optional

from ragutil.domain.constants import APP_NAME

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the ragutil CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Extract prompt units from spreadsheets, text, HTML and remote extraction APIs.",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        nargs="?",
        const="",
        default=None,
        help="Also write logs to a rotating file (default location when no path is given).",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the persisted configuration file.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration and exit.",
    )

    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    # --- Filesystem ---
    s = sub.add_parser("scan", help="Scan a directory tree honoring its root .gitignore.")
    s.add_argument("root", help="Directory to scan.")

    s = sub.add_parser("tree", help="Render a directory tree as ASCII.")
    s.add_argument("root", help="Directory to scan.")
    s.add_argument("--depth", type=int, default=None, help="Directory levels to expand.")
    s.add_argument("--limit", type=int, default=None, help="Maximum number of lines.")
    s.add_argument("--no-root-path", action="store_true", help="Omit the root's full path.")

    s = sub.add_parser("read", help="Read files as filtered ASCII text.")
    s.add_argument("paths", nargs="+", help="Files to read.")
    s.add_argument("--max-bytes", type=int, default=None, help="Per-file read cap.")

    # --- Local Extraction ---
    s = sub.add_parser("inspect-sheet", help="List the columns of every worksheet.")
    s.add_argument("path", help="Workbook file.")

    s = sub.add_parser("extract-sheet", help="Extract units from worksheet rows.")
    s.add_argument("path", help="Workbook file.")
    s.add_argument("--sheet", required=True, help="Worksheet name.")
    s.add_argument("--id-column", required=True, help="Header name of the id column.")
    s.add_argument(
        "--desc",
        dest="description_columns",
        action="append",
        default=[],
        help="Description column (repeatable, or comma-separated).",
    )

    s = sub.add_parser("extract-blocks", help="Split a text file at delimiter matches.")
    s.add_argument("path", help="Text file.")
    s.add_argument("--delimiter", required=True, help="Delimiter regular expression.")
    s.add_argument("--id-pattern", default=None, help="Regex whose first group is the unit id.")
    s.add_argument("--flags", default=None, help="Regex flags among i, m, s.")

    s = sub.add_parser("extract-html", help="Extract units from HTML elements.")
    s.add_argument("path", help="HTML file.")
    s.add_argument("--item", required=True, help="CSS selector of the items.")
    s.add_argument("--id-selector", default=None, help="CSS selector of the id element.")
    s.add_argument("--id-attribute", default=None, help="Attribute holding the id.")
    s.add_argument("--desc-selector", default=None, help="CSS selector of the body elements.")

    # --- Remote Extraction ---
    s = sub.add_parser("api-units", help="Extract units through the remote units endpoint.")
    s.add_argument("path", help="Source document.")
    s.add_argument("--endpoint", default=None, help="Units endpoint URL.")
    s.add_argument("--which", default=None, help="'items' or 'notes'.")
    s.add_argument(
        "--header",
        dest="headers",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Extra request header (repeatable).",
    )

    s = sub.add_parser("api-table", help="Normalize a table through the remote table endpoint.")
    source = s.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", dest="source_file", help="Local source document.")
    source.add_argument("--url", dest="source_url", help="Remote source document.")
    s.add_argument("--endpoint", default=None, help="Table endpoint URL.")

    # --- Prompt Assembly ---
    s = sub.add_parser("prompt", help="Assemble a Markdown prompt from text and files.")
    s.add_argument("root", nargs="?", default=None, help="Project root for the file tree.")
    s.add_argument("--text", default="", help="Prompt text.")
    s.add_argument("--text-file", default=None, help="Read the prompt text from a file.")
    s.add_argument("--system", default="", help="System prompt.")
    s.add_argument("--file", dest="files", action="append", default=[], help="File to include (repeatable).")
    s.add_argument("--tree", action="store_true", help="Append the ASCII tree of root.")
    s.add_argument("--payload", action="store_true", help="Emit the JSON payload instead of Markdown.")
    s.add_argument("--save-session", default=None, help="Export the prompt state to a session file.")
    s.add_argument("--load-session", default=None, help="Start from a saved session file.")

    s = sub.add_parser("save-chunk", help="Write text to a collision-free file.")
    s.add_argument("directory", help="Output directory.")
    s.add_argument("base", help="Base filename.")
    s.add_argument("--ext", default="md", help="Extension (default md).")
    s.add_argument("--contents", default=None, help="Text to write (stdin when omitted).")

    s = sub.add_parser("count-tokens", help="Count prompt tokens of a file or stdin.")
    s.add_argument("path", nargs="?", default=None, help="File to count (stdin when omitted).")

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}
    command = getattr(args, "command", None)

    if command == "api-units":
        overrides["units_endpoint"] = args.endpoint
        if args.headers:
            overrides["api_headers"] = parse_headers(args.headers)
    elif command == "api-table":
        overrides["table_endpoint"] = args.endpoint
    elif command == "read":
        overrides["max_read_bytes"] = args.max_bytes
    elif command == "extract-html":
        overrides["id_attribute"] = args.id_attribute

    if getattr(args, "debug", False):
        overrides["log_level"] = "DEBUG"

    return {k: v for k, v in overrides.items() if v is not None}

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def parse_headers(values: List[str]) -> Dict[str, str]:
    """
    Parse NAME=VALUE strings into a header mapping.

    Raises:
        ValueError: If an entry has no '=' or an empty name.
    """
    headers: Dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header '{raw}': expected NAME=VALUE")
        headers[name.strip()] = value.strip()
    return headers


def split_csv(values: Optional[List[str]]) -> List[str]:
    """Flatten repeatable, comma-separated option values into clean names."""
    out: List[str] = []
    for value in values or []:
        out.extend(x.strip() for x in value.split(","))
    return [x for x in out if x]
