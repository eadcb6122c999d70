"""
Formatters - Turn hook payloads into notification text
"""
import os
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import NotifyConfig
from .events import HookEvent, HookInput, last_assistant_message


@dataclass
class Notification:
    title: str
    subtitle: str
    body: str
    event_name: str = ""


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters (0 means no limit)"""
    text = text.strip()
    if limit > 0 and len(text) > limit:
        return text[:limit].rstrip() + "..."
    return text


def format_project_name(project_dir: Optional[str]) -> str:
    """Generate a friendly project name from the project directory"""
    if not project_dir:
        return "unknown"

    name = os.path.basename(os.path.normpath(project_dir))
    if not name:
        name = project_dir.replace("\\", "/").split("/")[-1] or "root"
    return name


def format_tool_input(tool_name: str, tool_input: Any) -> str:
    """One-line summary of a tool call"""
    if not isinstance(tool_input, dict):
        return str(tool_input) if tool_input else ""

    if tool_name == "Bash":
        return tool_input.get("command", "")

    elif tool_name in ["Write", "Edit", "MultiEdit", "Read", "NotebookEdit"]:
        return tool_input.get("file_path") or tool_input.get("notebook_path") or tool_input.get("path", "")

    elif tool_name in ["Grep", "Glob"]:
        pattern = tool_input.get("pattern", "")
        path = tool_input.get("path")
        return f"{pattern} in {path}" if path else pattern

    elif tool_name == "WebFetch":
        return tool_input.get("url", "")

    elif tool_name == "WebSearch":
        return tool_input.get("query", "")

    elif tool_name == "Task":
        return tool_input.get("description", "")

    else:
        return json.dumps(tool_input, ensure_ascii=False)


def _tool_failed(tool_response: Any) -> Optional[str]:
    """Error text if the tool response reports a failure"""
    if not isinstance(tool_response, dict):
        return None
    if tool_response.get("success") is False or tool_response.get("is_error") or tool_response.get("error"):
        error = tool_response.get("error") or tool_response.get("stderr") or "failed"
        return str(error)
    return None


# ================================
# Per-event templates: payload -> (label, body)
# ================================
def _stop(payload: HookInput):
    summary = last_assistant_message(payload.transcript_path) or payload.message
    return "✅ Task completed", summary or "Claude has finished responding."


def _subagent_stop(payload: HookInput):
    return "🤖 Subagent finished", payload.message or "A subagent task has completed."


def _notification(payload: HookInput):
    return "🔔 Needs attention", payload.message or "Claude is waiting for your input."


def _user_prompt_submit(payload: HookInput):
    return "💬 Prompt submitted", payload.prompt or "(empty prompt)"


def _pre_tool_use(payload: HookInput):
    tool_name = payload.tool_name or "Unknown"
    detail = format_tool_input(tool_name, payload.tool_input)
    body = f"{tool_name}: {detail}" if detail else tool_name
    return "🔧 Running tool", body


def _post_tool_use(payload: HookInput):
    tool_name = payload.tool_name or "Unknown"
    error = _tool_failed(payload.tool_response)
    if error:
        return "❌ Tool failed", f"{tool_name}: {error}"
    detail = format_tool_input(tool_name, payload.tool_input)
    return "✅ Tool finished", f"{tool_name}: {detail}" if detail else tool_name


def _session_start(payload: HookInput):
    return "▶️ Session started", f"Source: {payload.source or 'startup'}"


def _session_end(payload: HookInput):
    return "⏹️ Session ended", f"Reason: {payload.reason or 'other'}"


def _pre_compact(payload: HookInput):
    body = f"Trigger: {payload.trigger or 'auto'}"
    if payload.custom_instructions:
        body += f"\n{payload.custom_instructions}"
    return "🗜️ Compacting context", body


TEMPLATES: Dict[HookEvent, Callable] = {
    HookEvent.STOP: _stop,
    HookEvent.SUBAGENT_STOP: _subagent_stop,
    HookEvent.NOTIFICATION: _notification,
    HookEvent.USER_PROMPT_SUBMIT: _user_prompt_submit,
    HookEvent.PRE_TOOL_USE: _pre_tool_use,
    HookEvent.POST_TOOL_USE: _post_tool_use,
    HookEvent.SESSION_START: _session_start,
    HookEvent.SESSION_END: _session_end,
    HookEvent.PRE_COMPACT: _pre_compact,
}

_missing = set(HookEvent) - set(TEMPLATES)
if _missing:
    raise RuntimeError(f"No notification template for: {sorted(e.value for e in _missing)}")


def build_notification(
    event_name: str,
    payload: HookInput,
    config: NotifyConfig,
    project_dir: Optional[str] = None
) -> Notification:
    """Format the notification for one hook event"""
    if project_dir is None:
        project_dir = os.environ.get("CLAUDE_PROJECT_DIR") or payload.cwd or os.getcwd()
    project = format_project_name(project_dir)

    event = HookEvent.parse(event_name)
    if event is None:
        label = f"🔔 {event_name or 'Event'}"
        body = payload.message or payload.prompt or f"Hook event: {event_name or 'unknown'}"
    else:
        label, body = TEMPLATES[event](payload)

    return Notification(
        title=config.title,
        subtitle=f"[{project}] {label}",
        body=truncate(body, config.max_length) or label,
        event_name=event.value if event else (event_name or ""),
    )
