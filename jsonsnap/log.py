"""Audit logging.

Appends structured JSON entries to ~/.jsonsnap/logs.jsonl (or the path in
JSONSNAP_LOG_FILE). Each entry records one store event (backup, prune,
restore, delete, mutation) with a timestamp.
"""

import json
import os
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

LOGS_FILE = Path.home() / ".jsonsnap" / "logs.jsonl"

_console = Console(stderr=True)


def logs_file():
    override = os.environ.get("JSONSNAP_LOG_FILE")
    return Path(override) if override else LOGS_FILE


def write_log(entry):
    """Append an audit log entry."""
    path = logs_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    entry["timestamp"] = datetime.now().isoformat()
    with open(path, "a") as f:
        f.write(json.dumps(entry) + "\n")


def read_logs(limit=None):
    """Return logged entries oldest-first, skipping unreadable lines."""
    path = logs_file()
    if not path.exists():
        return []
    entries = []
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return entries[-limit:] if limit else entries


def warn(message):
    """Print an operator-facing warning to stderr."""
    _console.print(f"[yellow]Warning:[/yellow] {escape(str(message))}")
