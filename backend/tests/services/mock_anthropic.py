"""Mock Anthropic Client — stands in for AsyncAnthropic.messages in assistant tests.

Invariants:
    - Responses are consumed in order, one per messages.create call
    - An Exception instance in the sequence is raised instead of returned
    - Every call's kwargs are recorded for assertions

Design Decisions:
    - Flat mock classes (no inheritance): simple, explicit, easy to debug
    - Builders produce SDK-shaped errors from real httpx requests/responses
"""

import anthropic
import httpx

_URL = "https://api.anthropic.com/v1/messages"


class _Block:
    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


class _Usage:
    def __init__(self, input_tokens=100, output_tokens=50):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class _Message:
    def __init__(self, content, stop_reason="end_turn"):
        self.content = content
        self.stop_reason = stop_reason
        self.usage = _Usage()


class _Messages:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class MockAnthropicClient:
    def __init__(self, responses):
        self.messages = _Messages(responses)


# -- Builders -----------------------------------------------------------------


def text_message(text: str) -> _Message:
    return _Message([_Block(type="text", text=text)])


def status_error(cls, status_code: int, headers: dict | None = None):
    request = httpx.Request("POST", _URL)
    response = httpx.Response(status_code, request=request, headers=headers or {})
    return cls(f"HTTP {status_code}", response=response, body=None)


def rate_limit_error(retry_after: str | None = None):
    headers = {"retry-after": retry_after} if retry_after else {}
    return status_error(anthropic.RateLimitError, 429, headers)


def overloaded_error():
    return status_error(anthropic.APIStatusError, 529)


def timeout_error():
    return anthropic.APITimeoutError(request=httpx.Request("POST", _URL))
