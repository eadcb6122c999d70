"""
Push Client - deliver notifications to Bark and a DingTalk robot webhook

Each request is made by running curl in a subprocess. There are no retries:
a failed channel is logged and the other channel is still attempted.
"""
import time
import hmac
import json
import base64
import hashlib
import logging
import subprocess
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import NotifyConfig
from .formatters import Notification

logger = logging.getLogger(__name__)

CURL = "curl"

# Extra time given to the subprocess on top of curl's own --max-time
PROCESS_GRACE_SECONDS = 5

# Appended to curl's output so the HTTP status can be checked
STATUS_SUFFIX = "\n%{http_code}"


class PushClientError(Exception):
    """Exception raised when a delivery fails"""
    pass


@dataclass
class DeliveryResult:
    channel: str
    success: bool
    detail: str = ""


def _run_curl(args: List[str], timeout: int) -> Dict[str, Any]:
    """Run curl and return the decoded JSON response (empty dict if not JSON)"""
    cmd = [CURL, "-sS", "--max-time", str(timeout), "-w", STATUS_SUFFIX] + args

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            timeout=timeout + PROCESS_GRACE_SECONDS
        )
    except FileNotFoundError as e:
        raise PushClientError(f"{CURL} not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise PushClientError(f"{CURL} timed out after {e.timeout}s") from e
    except OSError as e:
        raise PushClientError(f"Failed to run {CURL}: {e}") from e

    stdout = proc.stdout.decode("utf-8", errors="replace")
    stderr = proc.stderr.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        raise PushClientError(
            f"{CURL} exited with code {proc.returncode}: {stderr.strip()}"
        )

    # Last line is the HTTP status written by -w
    output, _, status = stdout.rpartition("\n")
    status = status.strip()
    if not status.isdigit():
        output = stdout
    elif not 200 <= int(status) < 300:
        raise PushClientError(f"HTTP {status}: {output.strip()[:200]}")

    output = output.strip()
    if not output:
        return {}
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        logger.debug(f"Non-JSON response: {output[:200]}")
        return {}
    return data if isinstance(data, dict) else {}


# ================================
# Bark
# ================================
def _segment(text: str) -> str:
    return urllib.parse.quote(text, safe="")


def build_bark_url(config: NotifyConfig, notification: Notification) -> str:
    """Bark push URL: server/key/title/subtitle/body?options"""
    path = "/".join([
        _segment(config.bark_key),
        _segment(notification.title),
        _segment(notification.subtitle),
        _segment(notification.body),
    ])

    params = {
        "sound": config.bark_sound,
        "level": config.bark_level,
        "group": config.bark_group,
        "icon": config.bark_icon,
    }
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v})

    url = f"{config.bark_server.rstrip('/')}/{path}"
    return f"{url}?{query}" if query else url


def send_bark(config: NotifyConfig, notification: Notification) -> DeliveryResult:
    """Send a push notification through Bark"""
    url = build_bark_url(config, notification)
    response = _run_curl([url], config.timeout)

    code = response.get("code")
    if code is not None and code != 200:
        raise PushClientError(f"Bark error {code}: {response.get('message', '')}")
    return DeliveryResult("bark", True, str(response.get("message", "ok")))


# ================================
# DingTalk webhook
# ================================
def sign_webhook_url(url: str, secret: str, timestamp_ms: Optional[int] = None) -> str:
    """Append DingTalk timestamp and HMAC-SHA256 signature query parameters"""
    if timestamp_ms is None:
        timestamp_ms = int(round(time.time() * 1000))

    string_to_sign = f"{timestamp_ms}\n{secret}"
    digest = hmac.new(
        secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        digestmod=hashlib.sha256
    ).digest()
    sign = urllib.parse.quote_plus(base64.b64encode(digest).decode("utf-8"))

    separator = "&" if "?" in url else "?"
    return f"{url}{separator}timestamp={timestamp_ms}&sign={sign}"


def build_webhook_payload(notification: Notification) -> Dict[str, Any]:
    """Markdown message body for the robot webhook"""
    heading = f"{notification.title} {notification.subtitle}".strip()
    return {
        "msgtype": "markdown",
        "markdown": {
            "title": heading,
            "text": f"### {heading}\n\n{notification.body}",
        },
    }


def send_webhook(config: NotifyConfig, notification: Notification) -> DeliveryResult:
    """Post the notification to the group chat webhook"""
    url = config.dingtalk_webhook
    if config.dingtalk_secret:
        url = sign_webhook_url(url, config.dingtalk_secret)

    body = json.dumps(build_webhook_payload(notification), ensure_ascii=False)
    response = _run_curl(
        [
            "-X", "POST",
            "-H", "Content-Type: application/json",
            "-d", body,
            url,
        ],
        config.timeout
    )

    errcode = response.get("errcode", 0)
    if errcode != 0:
        raise PushClientError(f"Webhook error {errcode}: {response.get('errmsg', '')}")
    return DeliveryResult("dingtalk", True, str(response.get("errmsg", "ok")))


def send_all(config: NotifyConfig, notification: Notification) -> List[DeliveryResult]:
    """Try every configured channel; a failure in one does not stop the other"""
    channels = []
    if config.bark_key:
        channels.append(("bark", send_bark))
    if config.dingtalk_webhook:
        channels.append(("dingtalk", send_webhook))

    if not channels:
        logger.warning("No notification channel configured (set BARK_KEY or DINGTALK_WEBHOOK)")
        return []

    results = []
    for name, sender in channels:
        try:
            result = sender(config, notification)
            logger.info(f"Sent {name} notification: {result.detail}")
        except PushClientError as e:
            logger.error(f"Failed to send {name} notification: {e}")
            result = DeliveryResult(name, False, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error sending {name} notification: {e}")
            result = DeliveryResult(name, False, f"{type(e).__name__}: {e}")
        results.append(result)
    return results
