"Locating Claude Code session transcripts and summarising projects on disk."
import json
import logging
import re
from pathlib import Path

from claude_code_view.parser import strip_command_tags

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_DIR = Path.home() / ".claude" / "projects"

# Only this much of a transcript is read to build its preview
PREVIEW_BYTES = 8192
PREVIEW_LENGTH = 200


# --- File filtering ---

SKIP_PATTERNS = [
    re.compile(r"[\\/](?:subagents?)[\\/]"),
    re.compile(r"[\\/]processing[\\/]"),
]


def should_skip_file(filepath, include_agents=False):
    "Return True if this file is not a session transcript worth listing."
    s = filepath.as_posix()
    for pat in SKIP_PATTERNS:
        if pat.search(s):
            return True
    name = filepath.name
    if not include_agents and name.startswith("agent-"):
        return True
    if ".backup" in name:
        return True
    if " copy" in name or "(1)" in name:
        return True
    if ".timelines" in s:
        return True
    return False


# --- Project names ---

def dir_to_project(dirname):
    """Convert an encoded project directory name back to a path.

    Claude Code encodes absolute paths by replacing / with - and
    stripping the leading /. A double dash stands for "/@" (scoped
    directories like ``@org``). Literal hyphens are indistinguishable
    from separators, so this is best-effort. Names without a leading -
    are returned unchanged.
    """
    if not dirname.startswith("-"):
        return dirname
    return "/" + dirname[1:].replace("--", "/@").replace("-", "/")


def project_display_name(path):
    "Last segment of a project path, for display."
    segments = [seg for seg in path.split("/") if seg]
    return segments[-1] if segments else path


# --- Session previews ---

def _first_text(content):
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text") or ""
    return ""


def get_session_preview(filepath, max_bytes=PREVIEW_BYTES, max_length=PREVIEW_LENGTH):
    "Return the first user message of a transcript, reading only its head."
    try:
        with open(filepath, "rb") as f:
            head = f.read(max_bytes)
    except OSError:
        return "(unable to read session)"

    for line in head.decode("utf-8", errors="replace").splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except (json.JSONDecodeError, RecursionError):
            # Last line may be cut off at the byte limit
            continue
        if not isinstance(entry, dict) or entry.get("type") != "user":
            continue
        message = entry.get("message")
        if not isinstance(message, dict) or not message.get("content"):
            continue
        preview = strip_command_tags(_first_text(message["content"]))
        if len(preview) > max_length:
            preview = preview[:max_length] + "..."
        return preview or "(empty message)"
    return "(no user message found)"


def iter_thread_records(filepath):
    "Yield {uuid, parent_uuid, type} for each transcript record that has a uuid."
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except (json.JSONDecodeError, RecursionError):
                continue
            if not isinstance(entry, dict) or not entry.get("uuid"):
                continue
            yield {
                "uuid": entry["uuid"],
                "parent_uuid": entry.get("parentUuid"),
                "type": entry.get("type"),
            }


# --- Discovery ---

def collect_sessions(project_dir, include_agents=False):
    "Session info dicts for the transcripts in one project directory, newest first."
    project_dir = Path(project_dir)
    sessions = []
    for filepath in project_dir.glob("*.jsonl"):
        if should_skip_file(filepath, include_agents=include_agents):
            continue
        try:
            stat = filepath.stat()
        except OSError as e:
            logger.debug("Skipping %s: %s", filepath, e)
            continue
        if not filepath.is_file():
            continue
        sessions.append({
            "id": filepath.stem,
            "project": project_dir.name,
            "file_path": str(filepath),
            "modified_at": stat.st_mtime,
            "size_bytes": stat.st_size,
            "preview": get_session_preview(filepath),
        })
    sessions.sort(key=lambda s: s["modified_at"], reverse=True)
    return sessions


def discover_projects(claude_dir=DEFAULT_CLAUDE_DIR, include_agents=False):
    """Summarise every project directory under ``claude_dir``.

    Returns project summaries (name, display_name, path, session_count,
    last_activity_at, sessions) for directories holding at least one
    session, most recently active first.
    """
    claude_dir = Path(claude_dir)
    try:
        entries = sorted(claude_dir.iterdir())
    except OSError as e:
        logger.warning("Failed to read projects directory %s: %s", claude_dir, e)
        return []

    projects = []
    for entry in entries:
        if entry.name.startswith(".") or not entry.is_dir():
            continue
        try:
            sessions = collect_sessions(entry, include_agents=include_agents)
        except OSError as e:
            logger.debug("Skipping project %s: %s", entry, e)
            continue
        if not sessions:
            continue
        path = dir_to_project(entry.name)
        projects.append({
            "name": entry.name,
            "display_name": project_display_name(path),
            "path": path,
            "session_count": len(sessions),
            "last_activity_at": sessions[0]["modified_at"],
            "sessions": sessions,
        })

    projects.sort(key=lambda p: p["last_activity_at"], reverse=True)
    return projects
