"""Unit tests for the mail relay client"""

import json
import httpx

from debt_escalator.infrastructure.clients.notifier import NotifierClient

RELAY_URL = "http://relay.test/mail"


def _client(handler, max_retries: int = 3) -> NotifierClient:
    return NotifierClient(
        webhook_url=RELAY_URL,
        sender="Debt System <no-reply@example.com>",
        max_retries=max_retries,
        backoff_base=0,
        transport=httpx.MockTransport(handler),
    )


async def test_send_posts_message():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"message_id": "<abc@relay>"})

    delivered = await _client(handler).send("debtor@example.com", "Subject", "Body")

    assert delivered is True
    assert len(requests) == 1
    assert str(requests[0].url) == RELAY_URL
    assert json.loads(requests[0].content) == {
        "from": "Debt System <no-reply@example.com>",
        "to": "debtor@example.com",
        "subject": "Subject",
        "text": "Body",
    }


async def test_send_retries_server_errors():
    """5xx responses are retried until the relay accepts"""
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(202)

    assert await _client(handler).send("debtor@example.com", "Subject", "Body") is True
    assert len(attempts) == 3


async def test_send_swallows_final_failure():
    """A relay that never accepts is logged, not raised"""
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("relay down", request=request)

    assert await _client(handler, max_retries=2).send("debtor@example.com", "Subject", "Body") is False
    assert len(attempts) == 2


async def test_send_disabled_without_url():
    notifier = NotifierClient(webhook_url="")
    assert await notifier.send("debtor@example.com", "Subject", "Body") is False
