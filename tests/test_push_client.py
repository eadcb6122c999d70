"""
Push Client Tests: URL building, signing and per-channel delivery
"""
import hmac
import json
import base64
import hashlib
import urllib.parse

from hook_notify.config import NotifyConfig
from hook_notify.formatters import Notification
from hook_notify.push_client import (
    build_bark_url,
    build_webhook_payload,
    send_all,
    sign_webhook_url,
)


def _notification():
    return Notification(title="Claude Code", subtitle="[demo] ✅ Task completed", body="done a/b?")


def test_bark_url_encodes_path_segments():
    """Test 5.1: Title, subtitle and body are separate encoded path segments"""
    config = NotifyConfig(bark_key="KEY123", bark_sound="alarm", bark_level="timeSensitive")
    url = build_bark_url(config, _notification())

    base, _, query = url.partition("?")
    segments = base[len("https://api.day.app/"):].split("/")
    assert segments[0] == "KEY123"
    assert segments[1] == "Claude%20Code"
    assert urllib.parse.unquote(segments[2]) == "[demo] ✅ Task completed"
    assert segments[3] == "done%20a%2Fb%3F", "Body must not leak path or query characters"

    params = urllib.parse.parse_qs(query)
    assert params == {"sound": ["alarm"], "level": ["timeSensitive"], "group": ["claude-code"]}


def test_bark_url_without_options():
    """Test 5.2: Empty options are omitted"""
    config = NotifyConfig(bark_key="K", bark_group="", bark_server="https://bark.example.com")
    url = build_bark_url(config, _notification())
    assert url.startswith("https://bark.example.com/K/")
    assert "?" not in url


def test_webhook_signature():
    """Test 5.3: Signed webhook URL carries timestamp and HMAC-SHA256 sign"""
    url = sign_webhook_url("https://oapi.dingtalk.com/robot/send?access_token=tok", "SEC123", timestamp_ms=1700000000000)

    base, _, query = url.partition("?")
    params = urllib.parse.parse_qs(query)
    assert base == "https://oapi.dingtalk.com/robot/send"
    assert params["access_token"] == ["tok"]
    assert params["timestamp"] == ["1700000000000"]

    expected = hmac.new(b"SEC123", b"1700000000000\nSEC123", hashlib.sha256).digest()
    assert base64.b64decode(params["sign"][0]) == expected


def test_webhook_signature_without_query():
    """Test 5.4: A URL without a query gets '?' as separator"""
    url = sign_webhook_url("https://hooks.example.com/robot", "s", timestamp_ms=1)
    assert url.startswith("https://hooks.example.com/robot?timestamp=1&sign=")


def test_webhook_payload():
    """Test 5.5: Webhook body is a markdown message"""
    payload = build_webhook_payload(_notification())
    assert payload["msgtype"] == "markdown"
    assert payload["markdown"]["title"] == "Claude Code [demo] ✅ Task completed"
    assert payload["markdown"]["text"].endswith("done a/b?")


def test_send_all_uses_both_channels(fake_curl):
    """Test 5.6: Both configured channels are called"""
    fake_curl.responses.extend([
        (0, '{"code": 200, "message": "success"}'),
        (0, '{"errcode": 0, "errmsg": "ok"}'),
    ])
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot?access_token=t", dingtalk_secret="s")

    results = send_all(config, _notification())

    assert [(r.channel, r.success) for r in results] == [("bark", True), ("dingtalk", True)]
    assert len(fake_curl.calls) == 2
    bark_cmd, webhook_cmd = fake_curl.calls
    assert bark_cmd[0] == "curl"
    assert bark_cmd[-1].startswith("https://api.day.app/K/")
    assert "POST" in webhook_cmd
    assert "&sign=" in webhook_cmd[-1]
    body = json.loads(webhook_cmd[webhook_cmd.index("-d") + 1])
    assert body["msgtype"] == "markdown"


def test_failed_channel_does_not_stop_the_other(fake_curl):
    """Test 5.7: A curl failure on the push channel still sends the webhook"""
    fake_curl.responses.extend([
        (7, ""),
        (0, '{"errcode": 0, "errmsg": "ok"}'),
    ])
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert [(r.channel, r.success) for r in results] == [("bark", False), ("dingtalk", True)]
    assert "code 7" in results[0].detail


def test_error_responses_are_failures(fake_curl):
    """Test 5.8: Error codes in response bodies count as failures"""
    fake_curl.responses.extend([
        (0, '{"code": 400, "message": "failed to get device token"}'),
        (0, '{"errcode": 310000, "errmsg": "sign not match"}'),
    ])
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert not results[0].success
    assert "400" in results[0].detail
    assert not results[1].success
    assert "sign not match" in results[1].detail


def test_missing_curl(monkeypatch):
    """Test 5.9: A missing curl binary is reported, not raised"""
    import subprocess

    def _run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", _run)
    results = send_all(NotifyConfig(bark_key="K"), _notification())
    assert len(results) == 1
    assert not results[0].success
    assert "not found" in results[0].detail


def test_no_channels_configured(fake_curl):
    """Test 5.10: Nothing is sent without credentials"""
    assert send_all(NotifyConfig(), _notification()) == []
    assert fake_curl.calls == []


def test_unexpected_error_does_not_stop_the_other(monkeypatch, fake_curl):
    """Test 5.11: Errors other than delivery failures are contained per channel"""
    import subprocess

    real_fake = subprocess.run
    calls = []

    def _run(cmd, **kwargs):
        calls.append(cmd)
        if len(calls) == 1:
            raise PermissionError(13, "Permission denied", cmd[0])
        return real_fake(cmd, **kwargs)

    monkeypatch.setattr(subprocess, "run", _run)
    fake_curl.responses.append((0, '{"errcode": 0, "errmsg": "ok"}'))
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert [(r.channel, r.success) for r in results] == [("bark", False), ("dingtalk", True)]
    assert "Permission denied" in results[0].detail
    assert len(calls) == 2, "Webhook should still be attempted"


def test_sender_crash_is_recorded(monkeypatch, fake_curl):
    """Test 5.12: Any exception from a channel becomes a failed result"""
    from hook_notify import push_client

    def _boom(config, notification):
        raise RuntimeError("boom")

    monkeypatch.setattr(push_client, "send_bark", _boom)
    fake_curl.responses.append((0, '{"errcode": 0, "errmsg": "ok"}'))
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert [(r.channel, r.success) for r in results] == [("bark", False), ("dingtalk", True)]
    assert results[0].detail == "RuntimeError: boom"


def test_non_utf8_response_is_decoded(fake_curl):
    """Test 5.13: Undecodable response bytes do not break delivery"""
    fake_curl.responses.extend([
        (0, b"\xff\xfe gbk"),
        (0, '{"errcode": 0, "errmsg": "ok"}'),
    ])
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert [r.channel for r in results] == ["bark", "dingtalk"]
    assert results[1].success
    assert len(fake_curl.calls) == 2


def test_http_error_status_is_failure(fake_curl):
    """Test 5.14: Non-2xx HTTP status with a non-JSON body fails the channel"""
    fake_curl.responses.extend([
        (0, "<html>502 Bad Gateway</html>", 502),
        (0, "<html>ok</html>", 200),
    ])
    config = NotifyConfig(bark_key="K", dingtalk_webhook="https://hooks.example.com/robot")

    results = send_all(config, _notification())

    assert not results[0].success
    assert results[0].detail.startswith("HTTP 502")
    assert results[1].success
    assert "%{http_code}" in fake_curl.calls[0][fake_curl.calls[0].index("-w") + 1]
