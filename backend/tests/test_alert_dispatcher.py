import asyncio
import json
import logging

import httpx

from app.application.services.alert_dispatcher import (
    TelegramAlertDispatcher,
    build_failure_alert,
    build_success_alert,
)
from app.application.services.downtime_contract import DowntimeReportSubmission
from app.infrastructure.logging.context import CallerContext

CALLER = CallerContext(soc_portal_id="SOC-0042", eid="E1042", ip_address="10.0.0.7", user_agent="pytest-agent")


def test_success_alert_renders_report_details(report_payload):
    submission = DowntimeReportSubmission.model_validate(report_payload)
    text = build_success_alert(submission, downtime_id="DT000001SOCP", duration="01:00:00", caller=CALLER).render()

    assert "DT000001SOCP" in text
    assert "Gateway Timeout" in text
    assert "01/01/2024, 16:00" in text
    assert "01:00:00" in text
    assert "Successful" in text
    assert "SOC-0042" in text
    assert "Affected MNO        : N/A" in text


def test_failure_alert_without_allocation_shows_placeholder_id(report_payload):
    submission = DowntimeReportSubmission.model_validate(report_payload)
    text = build_failure_alert(submission, error=RuntimeError("disk full"), caller=CALLER).render()

    assert "Downtime ID          : N/A" in text
    assert "Failed: disk full" in text


def test_failure_alert_names_allocated_id(report_payload):
    submission = DowntimeReportSubmission.model_validate(report_payload)
    text = build_failure_alert(
        submission,
        error=RuntimeError("constraint violated"),
        caller=CALLER,
        downtime_id="DT000007SOCP",
    ).render()

    assert "Downtime ID          : DT000007SOCP" in text
    assert "Failed: constraint violated" in text


def test_notify_posts_to_send_message():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    dispatcher = TelegramAlertDispatcher(
        bot_token="123:abc",
        chat_id="-1001",
        base_url="https://telegram.test",
        transport=httpx.MockTransport(handler),
    )
    asyncio.run(dispatcher.notify("hello"))

    assert len(seen) == 1
    assert str(seen[0].url) == "https://telegram.test/bot123:abc/sendMessage"
    assert json.loads(seen[0].content) == {"chat_id": "-1001", "text": "hello"}


def test_notify_swallows_delivery_errors(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"ok": False})

    dispatcher = TelegramAlertDispatcher(
        bot_token="123:abc",
        chat_id="-1001",
        transport=httpx.MockTransport(handler),
    )
    with caplog.at_level(logging.ERROR):
        asyncio.run(dispatcher.notify("hello"))

    failures = [record for record in caplog.records if record.getMessage() == "alert delivery failed"]
    assert len(failures) == 1
    assert "502" in failures[0].meta["details"]


def test_notify_swallows_transport_errors(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = TelegramAlertDispatcher(bot_token="t", chat_id="c", transport=httpx.MockTransport(handler))
    with caplog.at_level(logging.ERROR):
        asyncio.run(dispatcher.notify("hello"))

    assert any(record.getMessage() == "alert delivery failed" for record in caplog.records)


def test_unconfigured_dispatcher_skips_without_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    dispatcher = TelegramAlertDispatcher(bot_token="", chat_id="", transport=httpx.MockTransport(handler))
    assert dispatcher.configured is False
    dispatcher.notify_blocking("hello")
    assert calls == []
