"""
Notification Hook Dispatcher

Usage: hook-notify <EventType>

Receives: JSON via stdin with hook details
Action: Sends a Bark push and/or DingTalk webhook message if the event is enabled
Output: Nothing on stdout, exit code 0
"""
import os
import sys
import logging
from typing import List, Optional, TextIO

from .config import NotifyConfig, load_config
from .events import STDIN_TIMEOUT, read_hook_input
from .formatters import build_notification
from .logging_config import debug_log
from .push_client import send_all

logger = logging.getLogger(__name__)


def dispatch(
    event_name: str,
    config: NotifyConfig,
    stdin: Optional[TextIO] = None,
    stdin_timeout: float = STDIN_TIMEOUT
) -> bool:
    """Handle one hook event. Returns True if anything was delivered."""
    payload = read_hook_input(stdin, stdin_timeout)
    logger.info(
        f"Event {event_name!r} session={payload.session_id or '-'} "
        f"keys={sorted(payload.model_dump(exclude_none=True).keys())}"
    )

    if not config.is_enabled(event_name):
        logger.info(f"Notifications for {event_name!r} are disabled, skipping")
        return False

    notification = build_notification(event_name, payload, config)
    logger.info(f"Notification: {notification.subtitle} | {notification.body[:80]!r}")

    results = send_all(config, notification)
    for result in results:
        logger.info(f"  {result.channel}: {'ok' if result.success else 'failed'} ({result.detail})")
    return any(result.success for result in results)


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = load_config(environ=os.environ)

    with debug_log(config.log_file, config.log_level, enabled=config.debug):
        if config.load_error:
            logger.error(f"{config.load_error}; using defaults")

        if not argv or not argv[0].strip():
            logger.error("No event type given (usage: hook-notify <EventType>)")
            return 0

        event_name = argv[0].strip()
        config.log_summary(logger)
        try:
            dispatch(event_name, config, stdin)
        except Exception as e:
            # Hooks always exit 0
            logger.exception(f"Unexpected error handling {event_name!r}: {e}")
    return 0


def run():
    """Console entry point"""
    code = main()
    sys.stdout.flush()
    sys.stderr.flush()
    # A stdin reader left blocked after the timeout must not hold up exit
    os._exit(code)


if __name__ == "__main__":
    run()
