# tests/helpers.py
# Scripted stand-ins for the LLM provider and the food search.
import copy
import json
from datetime import date

from core.exceptions import ProviderError
from services.llm_client import AssistantReply

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TEST_DAY = date(2025, 9, 14)


class FakeLLMClient:
    """
    Replays scripted replies. A script item may be an AssistantReply, None
    (no choices) or an exception to raise.
    """

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def chat(self, messages, tools=None):
        self.calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        if not self.replies:
            raise AssertionError("FakeLLMClient ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeSearchClient:
    def __init__(self, result='Found 1 results for "oats":\n\n1. Oats'):
        self.result = result
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        return self.result


def tool_call(call_id, name, arguments):
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": json.dumps(arguments)},
    }


def text_reply(content):
    return AssistantReply(content=content, tool_calls=[])


def tool_reply(*calls, content=""):
    return AssistantReply(content=content, tool_calls=list(calls))


def provider_failure():
    return ProviderError(
        "Error code: 500",
        status_code=500,
        reason="Internal Server Error",
        provider_error="boom",
        details={"error": {"message": "boom"}},
    )


def event_payloads(db, chat_session_id):
    """(type, payload) of every event in the session, oldest first"""
    from repositories.event_log import EventLog

    return [(event.type, json.loads(event.payload)) for event in EventLog.read_since(db, chat_session_id, None, 1000)]
