"""
Hook toggler - enable or disable notifications per hook event

Usage:
  hook-notify-toggle status
  hook-notify-toggle enable <hook-id>
  hook-notify-toggle disable <hook-id>
  hook-notify-toggle reset
  hook-notify-toggle help
"""
import sys
import argparse
from pathlib import Path
from typing import Dict, List, Optional

from .config import global_config_path, parse_bool, resolve_config_path
from .env_file import ConfigError, read_env_file, write_env_values
from .events import HookEvent

HOOK_IDS = [event.hook_id for event in HookEvent]


class ToggleArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1 like every other toggler failure"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = ToggleArgumentParser(
        prog="hook-notify-toggle",
        description="Enable or disable hook event notifications",
        epilog=f"Hook IDs: {', '.join(HOOK_IDS)}",
    )
    parser.add_argument("--config", type=Path, help="Config file to edit (default: first existing notify.env)")

    commands = parser.add_subparsers(dest="command", metavar="command")
    commands.add_parser("status", help="Show which hooks are enabled")
    enable = commands.add_parser("enable", help="Enable notifications for a hook")
    enable.add_argument("hook_id")
    disable = commands.add_parser("disable", help="Disable notifications for a hook")
    disable.add_argument("hook_id")
    commands.add_parser("reset", help="Restore default hook settings")
    commands.add_parser("help", help="Show this help")
    return parser


def hook_states(values: Dict[str, str]) -> Dict[HookEvent, bool]:
    return {
        event: parse_bool(values.get(event.config_key), event.default_enabled)
        for event in HookEvent
    }


def format_status(path: Optional[Path], values: Dict[str, str]) -> str:
    """Format hook status lines"""
    source = str(path) if path is not None and path.exists() else "(defaults, no config file)"
    lines = [f"Config: {source}", ""]
    for event, enabled in hook_states(values).items():
        emoji = "🟢" if enabled else "⚪"
        lines.append(f"  {emoji} {event.hook_id:<20} {'on' if enabled else 'off'}")
    return "\n".join(lines)


def _lookup_hook(hook_id: str) -> HookEvent:
    event = HookEvent.parse(hook_id)
    if event is None:
        raise ValueError(f"Unknown hook ID: {hook_id} (valid: {', '.join(HOOK_IDS)})")
    return event


def set_hook(path: Path, hook_id: str, enabled: bool) -> HookEvent:
    """Write the enable flag for one hook"""
    event = _lookup_hook(hook_id)
    write_env_values(path, {event.config_key: "true" if enabled else "false"})
    return event


def reset_hooks(path: Path) -> None:
    """Write every hook flag back to its default"""
    write_env_values(path, {
        event.config_key: "true" if event.default_enabled else "false"
        for event in HookEvent
    })


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    if args.command in (None, "help"):
        parser.print_help()
        return 0

    path = args.config or resolve_config_path() or global_config_path()

    try:
        if args.command == "status":
            print(format_status(path, read_env_file(path)))

        elif args.command in ("enable", "disable"):
            # Fail before writing if the existing file is unreadable
            read_env_file(path)
            enabled = args.command == "enable"
            event = set_hook(path, args.hook_id, enabled)
            print(f"{event.hook_id}: {'on' if enabled else 'off'} ({path})")

        elif args.command == "reset":
            read_env_file(path)
            reset_hooks(path)
            print(f"Hook settings reset to defaults ({path})")
            print(format_status(path, read_env_file(path)))

    except (ValueError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
