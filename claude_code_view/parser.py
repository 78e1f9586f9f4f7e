"Streaming parser turning a Claude Code JSONL transcript into conversation turns."
import errno
import json
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_TAG_RE = re.compile(r"<command-[^>]*>[^<]*</command-[^>]*>")


# --- Content extraction ---

def strip_command_tags(text):
    "Remove <command-*>...</command-*> markup and surrounding whitespace."
    return COMMAND_TAG_RE.sub("", text).strip()


def _text_blocks(content):
    return [
        block["text"]
        for block in content
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
    ]


def extract_user_content(content):
    "Return the display text of a user message, or None if there is none."
    if isinstance(content, str):
        return strip_command_tags(content) or None
    if isinstance(content, list):
        # tool_result and image blocks are not part of the visible turn
        texts = _text_blocks(content)
        if texts:
            return "\n".join(texts).strip() or None
    return None


def extract_assistant_content(content):
    "Return (text or None, [tool names]) for an assistant message."
    if not isinstance(content, list):
        return None, []
    texts = _text_blocks(content)
    text = None
    if texts:
        text = "\n".join(texts).strip() or None
    tools = [
        block["name"]
        for block in content
        if isinstance(block, dict)
        and block.get("type") == "tool_use"
        and isinstance(block.get("name"), str)
    ]
    return text, tools


def aggregate_tool_calls(names):
    "Collapse a list of tool names into [{name, count}] in first-seen order."
    counts = {}
    for name in names:
        counts[name] = counts.get(name, 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


class PendingToolCalls:
    """Tool calls seen since the last assistant turn with text.

    Flushed at three points: the start of a user turn, the next assistant
    message with text, and the end of the stream.
    """

    def __init__(self):
        self._names = []

    def __bool__(self):
        return bool(self._names)

    def __len__(self):
        return len(self._names)

    def add(self, names):
        self._names.extend(names)

    def flush(self):
        "Return the aggregated calls (None when idle) and reset."
        if not self._names:
            return None
        calls = aggregate_tool_calls(self._names)
        self._names = []
        return calls


# --- Session parsing ---

def _iter_entries(f, filepath):
    for line_num, line in enumerate(f, 1):
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except (json.JSONDecodeError, RecursionError):
            logger.debug("%s line %d: skipping malformed JSON", filepath, line_num)
            continue
        if not isinstance(entry, dict):
            logger.debug("%s line %d: skipping non-object record", filepath, line_num)
            continue
        yield entry


def _message_content(entry):
    message = entry.get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content") or None


def parse_session(filepath):
    """Parse a session transcript into ordered messages plus summary counts.

    Lines are read one at a time, so transcripts of any size can be parsed.
    Malformed lines are skipped. Raises FileNotFoundError if the file does
    not exist.
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        raise FileNotFoundError(
            errno.ENOENT, "Session file not found", str(filepath)
        )

    messages = []
    tool_counts = {}
    pending = PendingToolCalls()

    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        for entry in _iter_entries(f, filepath):
            rtype = entry.get("type")
            content = _message_content(entry)
            if content is None:
                continue

            if rtype == "user" and not entry.get("isMeta"):
                text = extract_user_content(content)
                if not text:
                    continue
                calls = pending.flush()
                if calls and messages and messages[-1]["role"] == "assistant":
                    messages[-1]["tool_calls"] = calls
                messages.append({
                    "role": "user",
                    "content": text,
                    "timestamp": entry.get("timestamp"),
                })

            elif rtype == "assistant":
                text, tools = extract_assistant_content(content)
                if tools:
                    pending.add(tools)
                    for name in tools:
                        tool_counts[name] = tool_counts.get(name, 0) + 1
                if text:
                    message = {
                        "role": "assistant",
                        "content": text,
                        "timestamp": entry.get("timestamp"),
                    }
                    calls = pending.flush()
                    if calls:
                        message["tool_calls"] = calls
                    messages.append(message)

    calls = pending.flush()
    if calls and messages:
        last = messages[-1]
        if last["role"] == "assistant" and "tool_calls" not in last:
            last["tool_calls"] = calls

    return {
        "messages": messages,
        "metadata": {
            "total_messages": len(messages),
            "tool_call_count": sum(tool_counts.values()),
        },
    }
