"""
Hook events - event types, stdin payload model and transcript helpers
"""
import os
import sys
import json
import logging
import threading
from enum import Enum
from typing import Any, List, Optional, TextIO

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

# How long to wait for the hook system to write the payload (seconds)
STDIN_TIMEOUT = 1.0


class HookEvent(str, Enum):
    STOP = "Stop"
    SUBAGENT_STOP = "SubagentStop"
    NOTIFICATION = "Notification"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"
    SESSION_START = "SessionStart"
    SESSION_END = "SessionEnd"
    PRE_COMPACT = "PreCompact"

    @property
    def hook_id(self) -> str:
        """CLI identifier, e.g. ``subagent-stop``"""
        return self.name.lower().replace("_", "-")

    @property
    def config_key(self) -> str:
        return f"NOTIFY_ON_{self.name}"

    @property
    def default_enabled(self) -> bool:
        return self in DEFAULT_ENABLED

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["HookEvent"]:
        """Look up an event by event name or hook ID, ignoring case"""
        if not name:
            return None
        wanted = name.strip().lower()
        for event in cls:
            if wanted in (event.value.lower(), event.hook_id, event.name.lower()):
                return event
        return None


DEFAULT_ENABLED = frozenset({HookEvent.STOP, HookEvent.NOTIFICATION})


class HookInput(BaseModel):
    """JSON object the hook system writes to stdin"""
    model_config = ConfigDict(extra="allow")

    session_id: Optional[str] = None
    transcript_path: Optional[str] = None
    cwd: Optional[str] = None
    hook_event_name: Optional[str] = None
    prompt: Optional[str] = None
    message: Optional[str] = None
    notification_type: Optional[str] = None
    tool_name: Optional[str] = None
    tool_input: Optional[Any] = None
    tool_response: Optional[Any] = None
    stop_hook_active: bool = False
    source: Optional[str] = None
    reason: Optional[str] = None
    trigger: Optional[str] = None
    custom_instructions: Optional[str] = None


def read_stdin(stream: Optional[TextIO] = None, timeout: float = STDIN_TIMEOUT) -> str:
    """
    Read everything from stdin, giving up after ``timeout`` seconds.

    The read runs in a daemon thread so a writer that never closes the pipe
    cannot hang the hook. On timeout an empty string is returned.
    """
    stream = stream if stream is not None else sys.stdin
    if stream is None:
        return ""

    try:
        if stream.isatty():
            return ""
    except (AttributeError, ValueError):
        pass

    chunks: List[str] = []

    def _reader():
        try:
            chunks.append(stream.read())
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read stdin: {e}")

    reader = threading.Thread(target=_reader, name="stdin-reader", daemon=True)
    reader.start()
    reader.join(timeout)

    if reader.is_alive():
        logger.warning(f"No input on stdin after {timeout:.1f}s, using empty payload")
        return ""
    return "".join(chunks)


def parse_hook_input(raw: str) -> HookInput:
    """Parse the stdin payload. Anything unusable yields an empty HookInput."""
    if not raw or not raw.strip():
        return HookInput()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse input JSON: {e}")
        return HookInput()

    if not isinstance(data, dict):
        logger.error(f"Expected a JSON object on stdin, got {type(data).__name__}")
        return HookInput()

    try:
        return HookInput.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid hook input: {e}")
        return HookInput()


def read_hook_input(stream: Optional[TextIO] = None, timeout: float = STDIN_TIMEOUT) -> HookInput:
    return parse_hook_input(read_stdin(stream, timeout))


def _message_text(message: Any) -> Optional[str]:
    """Extract text from a transcript message (string or content blocks)"""
    if isinstance(message, str):
        return message
    if not isinstance(message, dict):
        return None

    content = message.get("content", [])
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                texts.append(block.get("text", ""))
        return "\n".join(texts)
    return None


def last_assistant_message(transcript_path: Optional[str]) -> Optional[str]:
    """Return the text of the last assistant message in a JSONL transcript"""
    if not transcript_path or not os.path.exists(transcript_path):
        return None

    try:
        with open(transcript_path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read transcript: {e}")
        return None

    for line in reversed(lines):
        try:
            entry = json.loads(line.strip())
        except json.JSONDecodeError:
            continue
        if not isinstance(entry, dict):
            continue

        message = entry.get("message", {})
        is_assistant = (
            entry.get("type") == "assistant" or
            (isinstance(message, dict) and message.get("role") == "assistant")
        )
        if not is_assistant:
            continue

        text = _message_text(message)
        if text and text.strip():
            logger.debug(f"Found assistant message in transcript ({len(text)} chars)")
            return text.strip()
    return None
