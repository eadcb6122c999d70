"""
Notify Configuration - layered env file lookup

Config is read from the first existing file among:
  1. $CLAUDE_PROJECT_DIR/.claude/notify.env
  2. ./.claude/notify.env
  3. ~/.claude/notify.env
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .env_file import ConfigError, read_env_file
from .events import HookEvent

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".claude"
CONFIG_FILE_NAME = "notify.env"

DEFAULT_LOG_FILE = Path(__file__).parent / "notify_debug.log"

TRUE_VALUES = ("true", "1", "yes", "on")

# ================================
# Defaults for non-hook settings
# ================================
DEFAULTS = {
    "NOTIFY_ENABLED": "true",
    "NOTIFY_TITLE": "Claude Code",
    "NOTIFY_MAX_LENGTH": "200",
    "NOTIFY_TIMEOUT": "10",
    "NOTIFY_DEBUG": "true",
    "NOTIFY_LOG_FILE": "",
    "LOG_LEVEL": "INFO",
    "BARK_KEY": "",
    "BARK_SERVER": "https://api.day.app",
    "BARK_SOUND": "",
    "BARK_LEVEL": "",
    "BARK_GROUP": "claude-code",
    "BARK_ICON": "",
    "DINGTALK_WEBHOOK": "",
    "DINGTALK_SECRET": "",
}


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUE_VALUES


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer {value!r}, using {default}")
        return default


def config_search_paths(
    project_dir: Optional[str] = None,
    cwd: Optional[str] = None,
    home: Optional[str] = None
) -> List[Path]:
    """Candidate config files, highest priority first"""
    if project_dir is None:
        project_dir = os.environ.get("CLAUDE_PROJECT_DIR")
    cwd = cwd or os.getcwd()
    home = home or str(Path.home())

    candidates = []
    if project_dir:
        candidates.append(Path(project_dir) / CONFIG_DIR_NAME / CONFIG_FILE_NAME)
    candidates.append(Path(cwd) / CONFIG_DIR_NAME / CONFIG_FILE_NAME)
    candidates.append(Path(home) / CONFIG_DIR_NAME / CONFIG_FILE_NAME)

    paths = []
    seen = set()
    for candidate in candidates:
        key = os.path.normcase(os.path.abspath(candidate))
        if key not in seen:
            seen.add(key)
            paths.append(candidate)
    return paths


def resolve_config_path(
    project_dir: Optional[str] = None,
    cwd: Optional[str] = None,
    home: Optional[str] = None
) -> Optional[Path]:
    """First existing config file, or None"""
    for path in config_search_paths(project_dir, cwd, home):
        if path.is_file():
            return path
    return None


def global_config_path(home: Optional[str] = None) -> Path:
    return Path(home or str(Path.home())) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


@dataclass
class NotifyConfig:
    """Settings for one invocation"""
    path: Optional[Path] = None
    hooks: Dict[HookEvent, bool] = field(
        default_factory=lambda: {event: event.default_enabled for event in HookEvent}
    )
    enabled: bool = True
    title: str = "Claude Code"
    max_length: int = 200
    timeout: int = 10
    debug: bool = True
    log_file: Path = DEFAULT_LOG_FILE
    log_level: str = "INFO"

    bark_key: str = ""
    bark_server: str = "https://api.day.app"
    bark_sound: str = ""
    bark_level: str = ""
    bark_group: str = "claude-code"
    bark_icon: str = ""

    dingtalk_webhook: str = ""
    dingtalk_secret: str = ""

    # Set when the config file existed but could not be read
    load_error: Optional[str] = None

    @classmethod
    def from_values(cls, values: Mapping[str, str], path: Optional[Path] = None) -> "NotifyConfig":
        def get(key: str) -> str:
            value = values.get(key)
            return DEFAULTS[key] if value is None else value.strip()

        hooks = {
            event: parse_bool(values.get(event.config_key), event.default_enabled)
            for event in HookEvent
        }

        log_file = get("NOTIFY_LOG_FILE")

        return cls(
            path=path,
            hooks=hooks,
            enabled=parse_bool(values.get("NOTIFY_ENABLED"), True),
            title=get("NOTIFY_TITLE") or DEFAULTS["NOTIFY_TITLE"],
            max_length=_parse_int(get("NOTIFY_MAX_LENGTH"), 200),
            timeout=_parse_int(get("NOTIFY_TIMEOUT"), 10),
            debug=parse_bool(values.get("NOTIFY_DEBUG"), True),
            log_file=Path(log_file).expanduser() if log_file else DEFAULT_LOG_FILE,
            log_level=get("LOG_LEVEL").upper() or "INFO",
            bark_key=get("BARK_KEY"),
            bark_server=(get("BARK_SERVER") or DEFAULTS["BARK_SERVER"]).rstrip("/"),
            bark_sound=get("BARK_SOUND"),
            bark_level=get("BARK_LEVEL"),
            bark_group=get("BARK_GROUP"),
            bark_icon=get("BARK_ICON"),
            dingtalk_webhook=get("DINGTALK_WEBHOOK"),
            dingtalk_secret=get("DINGTALK_SECRET"),
        )

    def is_enabled(self, event_name: Optional[str]) -> bool:
        """
        Whether a notification should go out for this event type.

        Event types missing from the enablement map are enabled, unless the
        NOTIFY_ENABLED master switch is off, which silences every event.
        """
        if not self.enabled:
            return False
        event = HookEvent.parse(event_name)
        if event is None or event not in self.hooks:
            return True
        return self.hooks[event]

    def log_summary(self, log=None):
        """Log configuration for debugging (masks sensitive values)"""
        log = log or logger
        log.info(f"Configuration loaded from {self.path or '(defaults)'}")
        log.info(f"  BARK_SERVER: {self.bark_server}")
        log.info(f"  BARK_KEY: {mask(self.bark_key)}")
        log.info(f"  DINGTALK_WEBHOOK: {mask(self.dingtalk_webhook, show=40)}")
        log.info(f"  DINGTALK_SECRET: {mask(self.dingtalk_secret)}")
        enabled = [event.hook_id for event, on in self.hooks.items() if on]
        log.info(f"  Enabled hooks: {', '.join(enabled) or '(none)'}")


def mask(val: str, show: int = 8) -> str:
    if not val:
        return "(not set)"
    if len(val) <= show:
        return "*" * len(val)
    return val[:show] + "..."


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None
) -> NotifyConfig:
    """
    Load configuration for the dispatcher.

    Never raises: when the file cannot be read, defaults are used and the
    error is kept in ``load_error`` for the caller to log.
    Variables already present in ``environ`` take precedence over the file.
    """
    if path is None:
        path = resolve_config_path()

    values: Dict[str, str] = {}
    load_error = None
    if path is not None:
        try:
            values = read_env_file(path)
        except ConfigError as e:
            load_error = str(e)
            values = {}

    if environ:
        known = set(DEFAULTS) | {event.config_key for event in HookEvent}
        for key in known:
            if key in environ:
                values[key] = environ[key]

    config = NotifyConfig.from_values(values, path=path)
    config.load_error = load_error
    return config
