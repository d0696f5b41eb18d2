"""
Agent Service - Streams an Anthropic tool-use conversation for the notes agent
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator

import aiohttp

from models.chat import ChatMessage, StreamEvent
from services.config_manager import DEFAULT_MODEL
from services.tools import NotesToolbox

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
RETRYABLE_STATUSES = (429, 503, 529)


class AnthropicAPIError(Exception):
    """Non-200 response from the Messages API"""

    def __init__(self, status: int, body: str):
        super().__init__(f"Anthropic API error ({status}): {body}")
        self.status = status
        self.body = body


class TurnAccumulator:
    """Rebuilds the assistant content blocks of one streamed turn from SSE events"""

    def __init__(self):
        self.blocks: dict[int, dict[str, Any]] = {}
        self._partial_json: dict[int, str] = {}
        self.stop_reason: str | None = None

    def feed(self, event: dict[str, Any]) -> str | None:
        """Apply one event; return the text delta it carries, if any"""
        kind = event.get("type")

        if kind == "content_block_start":
            index = event["index"]
            self.blocks[index] = dict(event["content_block"])
            if self.blocks[index].get("type") == "tool_use":
                self._partial_json[index] = ""

        elif kind == "content_block_delta":
            index = event["index"]
            delta = event.get("delta", {})
            if delta.get("type") == "text_delta":
                block = self.blocks.setdefault(index, {"type": "text", "text": ""})
                block["text"] = block.get("text", "") + delta.get("text", "")
                return delta.get("text") or None
            if delta.get("type") == "input_json_delta":
                self._partial_json[index] = self._partial_json.get(index, "") + delta.get("partial_json", "")

        elif kind == "content_block_stop":
            index = event["index"]
            if index in self._partial_json:
                raw = self._partial_json.pop(index)
                self.blocks[index]["input"] = json.loads(raw) if raw else {}

        elif kind == "message_delta":
            self.stop_reason = event.get("delta", {}).get("stop_reason") or self.stop_reason

        elif kind == "error":
            error = event.get("error", {})
            raise Exception(f"Anthropic stream error: {error.get('message', error)}")

        return None

    def content_blocks(self) -> list[dict[str, Any]]:
        blocks = [self.blocks[i] for i in sorted(self.blocks)]
        # The API rejects empty text blocks when they are sent back
        return [b for b in blocks if b.get("type") != "text" or b.get("text")]

    def tool_uses(self) -> list[dict[str, Any]]:
        return [b for b in self.content_blocks() if b.get("type") == "tool_use"]

    def text(self) -> str:
        return "".join(b.get("text", "") for b in self.content_blocks() if b.get("type") == "text")


def parse_sse_line(line_text: str) -> dict[str, Any] | None:
    """Parse one `data: {...}` SSE line; other lines yield None"""
    if not line_text.startswith("data: "):
        return None
    try:
        return json.loads(line_text[6:])
    except json.JSONDecodeError:
        return None


def to_anthropic_messages(chat_messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert browser chat messages into Messages API messages.

    Completed tool invocations on an assistant message are replayed as a
    tool_use / tool_result pair ahead of the assistant's final text.
    """
    messages: list[dict[str, Any]] = []
    for message in chat_messages:
        if message.role == "user":
            if message.content:
                messages.append({"role": "user", "content": message.content})
            continue

        finished = [inv for inv in message.tool_invocations or [] if inv.state == "result"]
        if finished:
            messages.append(
                {
                    "role": "assistant",
                    "content": [
                        {"type": "tool_use", "id": inv.tool_call_id, "name": inv.tool_name, "input": inv.args}
                        for inv in finished
                    ],
                }
            )
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "tool_result", "tool_use_id": inv.tool_call_id, "content": inv.result or ""}
                        for inv in finished
                    ],
                }
            )
        if message.content:
            messages.append({"role": "assistant", "content": message.content})
    return messages


class AgentService:
    """Service for running the notes agent against the Anthropic Messages API"""

    def __init__(self, config: dict[str, Any]):
        self.config = config
        self.model = config.get("model") or DEFAULT_MODEL
        self.max_steps = int(config.get("maxSteps", 20))
        self.max_tokens = int(config.get("maxTokens", 8192))

    # ========== Config Helpers ==========

    def _get_headers(self) -> dict[str, str]:
        """Request headers. Raises if the API key is missing."""
        api_key = self.config.get("apiKey")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")
        return {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _build_payload(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
            "tools": tools,
            "stream": True,
        }

    async def _retry_with_backoff(self, operation, max_retries: int = 3):
        """Execute operation with exponential backoff on timeouts, overload and rate limits"""
        for attempt in range(max_retries):
            try:
                return await operation()
            except AnthropicAPIError as e:
                if e.status not in RETRYABLE_STATUSES or attempt == max_retries - 1:
                    raise
                wait_time = 40 + attempt * 20 if e.status == 429 else (2**attempt) * 5
                print(
                    f"[AgentService] API returned {e.status}. Retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(wait_time)
            except (asyncio.TimeoutError, aiohttp.ClientConnectionError) as e:
                if attempt == max_retries - 1:
                    raise
                wait_time = (2**attempt) * 2
                print(
                    f"[AgentService] Network error: {e!r}. Retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(wait_time)

    async def _open_stream(self, payload: dict[str, Any]):
        """Connect and check the status; returns (session, response)"""
        headers = self._get_headers()

        async def _connect():
            timeout = aiohttp.ClientTimeout(total=None, sock_read=120)
            session = aiohttp.ClientSession(timeout=timeout)
            try:
                response = await session.post(ANTHROPIC_URL, json=payload, headers=headers)
                if response.status != 200:
                    error_text = await response.text()
                    response.release()
                    raise AnthropicAPIError(response.status, error_text)
            except BaseException:
                await session.close()
                raise
            return session, response

        return await self._retry_with_backoff(_connect)

    async def stream_turn(self, payload: dict[str, Any], turn: TurnAccumulator) -> AsyncIterator[str]:
        """Stream one model turn into `turn`, yielding text deltas as they arrive"""
        session, response = await self._open_stream(payload)
        try:
            async for line in response.content:
                event = parse_sse_line(line.decode("utf-8").strip())
                if event is None:
                    continue
                text = turn.feed(event)
                if text:
                    yield text
        finally:
            response.release()
            await session.close()

    async def run_agent(
        self,
        messages: list[dict[str, Any]],
        toolbox: NotesToolbox,
        system: str,
    ) -> AsyncIterator[StreamEvent]:
        """Agent loop: model turn, run requested tools, feed results back, repeat"""
        conversation = list(messages)
        print(f"[AgentService] Running agent with model: {self.model}")

        for step in range(1, self.max_steps + 1):
            turn = TurnAccumulator()
            payload = self._build_payload(system, conversation, toolbox.definitions)
            async for chunk in self.stream_turn(payload, turn):
                yield StreamEvent(type="text", chunk=chunk)

            conversation.append({"role": "assistant", "content": turn.content_blocks()})
            tool_uses = turn.tool_uses()
            if turn.stop_reason != "tool_use" or not tool_uses:
                yield StreamEvent(type="done", done=True, metadata={"steps": step, "stopReason": turn.stop_reason})
                return

            results = []
            for block in tool_uses:
                args = block.get("input") or {}
                yield StreamEvent(
                    type="tool_call", tool_call_id=block["id"], tool_name=block["name"], args=args
                )
                output = await asyncio.to_thread(toolbox.execute, block["name"], args)
                yield StreamEvent(
                    type="tool_result", tool_call_id=block["id"], tool_name=block["name"], result=output
                )
                results.append({"type": "tool_result", "tool_use_id": block["id"], "content": output})
            conversation.append({"role": "user", "content": results})

        print(f"[AgentService] Stopped after reaching {self.max_steps} steps")
        yield StreamEvent(type="done", done=True, metadata={"steps": self.max_steps, "stopReason": "max_steps"})


# ═══════════════════════════════════════════════════════════════════════════
# Module-level helper functions
# ═══════════════════════════════════════════════════════════════════════════


async def run_agent_stream(
    chat_messages: list[ChatMessage],
    config: dict[str, Any],
    toolbox: NotesToolbox,
    system: str,
) -> AsyncIterator[StreamEvent]:
    """Convenience function to run the agent on browser chat messages."""
    service = AgentService(config)
    async for event in service.run_agent(to_anthropic_messages(chat_messages), toolbox, system):
        yield event
