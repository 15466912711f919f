"""Snapshot file names.

    {timestamp}_{reason_tag}{base_name}
    2024-01-01T00-00-00-000Z_articles.json
    2024-01-01T00-00-00-000Z_pre_restore_articles.json

The timestamp is an ISO-8601 UTC instant with ':' and '.' replaced by '-'.
Its fields are fixed-width, so names of one base file sort by creation time.
Parsing is positional, which keeps the millisecond and never confuses the
date's hyphens with the time's.
"""

import re
from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
PRE_RESTORE = "pre_restore_"

# tag -> reason label; "pre-restore_" is what older API restores wrote
REASON_TAGS = {
    PRE_RESTORE: "pre_restore",
    "pre-restore_": "pre_restore",
}

_NAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z)_(.+)$")


def timestamp_token(moment=None):
    """Render moment (default now, UTC) as a sortable, filesystem-safe token."""
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT) + f"-{moment.microsecond // 1000:03d}Z"


def parse_timestamp(token):
    """Inverse of timestamp_token. Raises ValueError on malformed tokens."""
    if len(token) != 24 or not token.endswith("Z"):
        raise ValueError(f"Not a snapshot timestamp: {token!r}")
    moment = datetime.strptime(token[:19], TIMESTAMP_FORMAT)
    millis = int(token[20:23])
    return moment.replace(microsecond=millis * 1000, tzinfo=timezone.utc)


def normalize_reason(reason):
    """Reason tags always end with '_' so they read as a prefix of the base name."""
    if not reason:
        return ""
    return reason if reason.endswith("_") else reason + "_"


def snapshot_name(base_name, reason="", moment=None):
    return f"{timestamp_token(moment)}_{normalize_reason(reason)}{base_name}"


def parse_snapshot_name(name, known_bases=()):
    """Split a snapshot name into its parts.

    Returns {"timestamp", "reason", "original"} or None when the name does not
    start with a timestamp token (legacy or foreign files). With known_bases,
    any tag in front of a known base name is taken as the reason; otherwise
    only the tags in REASON_TAGS are recognized.
    """
    match = _NAME_RE.match(name)
    if not match:
        return None
    token, rest = match.groups()
    try:
        moment = parse_timestamp(token)
    except ValueError:
        return None

    if rest in known_bases:
        return {"timestamp": moment, "reason": "", "original": rest}

    # Longest base first: "old_articles.json" must win over "articles.json"
    for base in sorted(known_bases, key=len, reverse=True):
        if rest.endswith("_" + base):
            tag = rest[: -len(base)]
            return {"timestamp": moment, "reason": _reason_label(tag), "original": base}

    for tag in REASON_TAGS:
        if rest.startswith(tag) and len(rest) > len(tag):
            return {"timestamp": moment, "reason": _reason_label(tag), "original": rest[len(tag):]}
    return {"timestamp": moment, "reason": "", "original": rest}


def _reason_label(tag):
    return REASON_TAGS.get(tag, tag.rstrip("_"))
