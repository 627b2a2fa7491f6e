"""Stub LLM provider for testing."""

import json
import re

from creative_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from creative_engine.logging import get_logger

logger = get_logger(__name__)

_COUNT = re.compile(r"Write (\d+) ")


class StubLLMProvider(LLMProvider):
    """Stub provider that returns numbered ad scripts."""

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return a mock completion response."""
        logger.info("stub_llm_complete", message_count=len(messages), json_mode=json_mode)

        user_message = next((m.content for m in reversed(messages) if m.role == "user"), "")
        match = _COUNT.search(user_message)
        count = int(match.group(1)) if match else 3

        if json_mode:
            content = json.dumps(
                {
                    "scripts": [
                        {
                            "title": f"Stub Script {i + 1}",
                            "content": (
                                f"Script number {i + 1}. Stop scrolling, this one is for you. "
                                "Try it today and see the difference for yourself."
                            ),
                            "reasoning": "Direct hook followed by a clear call to action",
                            "target_metrics": ["hook_rate", "ctr"],
                        }
                        for i in range(count)
                    ]
                }
            )
        else:
            content = f"This is a stub response for: {user_message[:100]}"

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )
