"""Claude tool-calling loop with per-thread conversation checkpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from anthropic import APIError, AsyncAnthropic
from pydantic import ValidationError

from yt_agent.agent.memory import ConversationStore, Message
from yt_agent.agent.tools import Tool, build_tools
from yt_agent.errors import ExternalServiceError, YtAgentError

if TYPE_CHECKING:
    from yt_agent.config import Settings
    from yt_agent.ingestion.storage import VectorIndex
    from yt_agent.scraping.brightdata import BrightDataClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a research assistant for YouTube videos. You answer questions using "
    "the transcripts stored in a vector store.\n\n"
    "Tools:\n"
    "- retrieve: transcript passages of one video, by video ID.\n"
    "- retrieve_similar_videos: IDs of indexed videos related to a topic.\n"
    "- trigger_youtube_video_scrape: start indexing a new video from its URL. "
    "Only use it for videos that are not indexed yet; the transcript becomes "
    "searchable a little while after the job finishes.\n\n"
    "Base your answers on retrieved transcript text. If nothing relevant is "
    "indexed, say so."
)


def _block_to_param(block: Any) -> Message | None:
    """Convert a response content block into a request message block."""
    if block.type == "text":
        return {"type": "text", "text": block.text}
    if block.type == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    return None


class Agent:
    """Lets Claude answer a user message by calling the retrieval tools.

    Claude decides which tools to call, in what order and how often. Each
    ``invoke`` resumes the message history stored for its ``thread_id`` and
    commits the extended history only once the turn has produced an answer.
    """

    def __init__(
        self,
        client: AsyncAnthropic,
        tools: list[Tool],
        memory: ConversationStore | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        max_steps: int = 25,
        system: str = SYSTEM_PROMPT,
    ) -> None:
        self.client = client
        self.tools = {tool.name: tool for tool in tools}
        self.memory = memory or ConversationStore()
        self.model = model
        self.max_tokens = max_tokens
        self.max_steps = max_steps
        self.system = system

    async def invoke(self, thread_id: str, user_message: str) -> str:
        """Run one conversation turn and return the assistant's final text.

        Raises:
            ExternalServiceError: If the Anthropic API fails or the model keeps
                requesting tools past ``max_steps``.
        """
        messages = self.memory.load(thread_id)
        messages.append({"role": "user", "content": user_message})

        for step in range(self.max_steps):
            response = await self._create(messages)
            content = [p for p in (_block_to_param(b) for b in response.content) if p]
            finished = response.stop_reason != "tool_use"
            if finished:
                # A stored tool_use needs a tool_result right after it.
                unanswered = [p for p in content if p["type"] == "tool_use"]
                if unanswered:
                    logger.warning(
                        "Thread %s: dropping %d unanswered tool call(s) after stop_reason=%s",
                        thread_id,
                        len(unanswered),
                        response.stop_reason,
                    )
                    content = [p for p in content if p["type"] != "tool_use"]
            if content:
                messages.append({"role": "assistant", "content": content})

            if finished:
                self.memory.save(thread_id, messages)
                return "".join(b.text for b in response.content if b.type == "text")

            tool_calls = [b for b in response.content if b.type == "tool_use"]
            logger.info(
                "Thread %s step %d: calling %s",
                thread_id,
                step + 1,
                ", ".join(b.name for b in tool_calls),
            )
            results = await asyncio.gather(*(self._run_tool(b) for b in tool_calls))
            messages.append({"role": "user", "content": list(results)})

        raise ExternalServiceError(
            "anthropic",
            f"agent did not finish within {self.max_steps} steps",
        )

    async def _create(self, messages: list[Message]) -> Any:
        try:
            return await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self.system,
                tools=[tool.definition() for tool in self.tools.values()],
                messages=messages,  # type: ignore[arg-type]
            )
        except APIError as exc:
            raise ExternalServiceError("anthropic", f"messages.create failed: {exc}") from exc

    async def _run_tool(self, block: Any) -> Message:
        """Execute one tool_use block and wrap its output as a tool_result.

        Any failure, including unknown tools and invalid arguments, is
        reported back to the model as an error result instead of ending the turn.
        """
        result: Message = {"type": "tool_result", "tool_use_id": block.id}
        tool = self.tools.get(block.name)
        if tool is None:
            result.update(content=f"Unknown tool: {block.name}", is_error=True)
            return result

        try:
            result["content"] = await tool.run(block.input)
        except (ValidationError, YtAgentError) as exc:
            logger.warning("Tool %s failed: %s", block.name, exc)
            result.update(content=f"Error: {exc}", is_error=True)
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", block.name)
            result.update(content=f"Error: {type(exc).__name__}: {exc}", is_error=True)
        return result

    async def aclose(self) -> None:
        await self.client.close()


def build_agent(
    settings: Settings,
    index: VectorIndex,
    scraper: BrightDataClient,
    client: AsyncAnthropic | None = None,
) -> Agent:
    """Wire Claude, the retrieval tools and a fresh conversation store."""
    tools = build_tools(
        index,
        scraper,
        retrieve_k=settings.retrieve_k,
        similar_videos_k=settings.similar_videos_k,
    )
    return Agent(
        client=client or AsyncAnthropic(api_key=settings.anthropic_api_key),
        tools=tools,
        memory=ConversationStore(),
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
        max_steps=settings.agent_max_steps,
    )
