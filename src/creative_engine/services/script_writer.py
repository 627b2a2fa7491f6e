"""Ad script generation using LLM providers."""

import json

from creative_engine.adapters.llm.base import LLMMessage, LLMProvider
from creative_engine.domain.models import ScriptDraft
from creative_engine.errors import ScriptGenerationError
from creative_engine.logging import get_logger

logger = get_logger(__name__)

MAX_GUIDANCE_CHARS = 5000


class ScriptWriter:
    """Writes batches of short-form ad scripts from optional guidance."""

    SYSTEM_PROMPT = """You are a performance marketing copywriter.
You write voiceover scripts for 15-30 second vertical video ads.

You must output a JSON object with this exact structure:
{
  "scripts": [
    {
      "title": "Short distinct title",
      "content": "The full voiceover, spoken naturally, 40-80 words",
      "reasoning": "Why this angle should perform",
      "target_metrics": ["hook_rate", "ctr"]
    }
  ]
}

Guidelines:
- Open with a hook in the first sentence
- Every title must be unique within the batch
- End with a clear call to action
- Write only the spoken words in "content", no stage directions"""

    def __init__(self, llm: LLMProvider) -> None:
        self.llm = llm

    def _build_user_prompt(self, count: int, guidance: str | None, language: str) -> str:
        parts = [f"Write {count} ad scripts in language '{language}'."]
        if guidance:
            parts.append(f"Creative guidance:\n{guidance[:MAX_GUIDANCE_CHARS]}")
        return "\n\n".join(parts)

    async def generate(
        self,
        count: int,
        guidance: str | None = None,
        language: str = "en",
    ) -> list[ScriptDraft]:
        """Generate ``count`` script drafts.

        Raises:
            ScriptGenerationError: If the response is not valid JSON or has no scripts.
        """
        messages = [
            LLMMessage(role="system", content=self.SYSTEM_PROMPT),
            LLMMessage(role="user", content=self._build_user_prompt(count, guidance, language)),
        ]
        response = await self.llm.complete(messages=messages, temperature=0.9, json_mode=True)

        try:
            data = json.loads(response.content)
        except json.JSONDecodeError as e:
            logger.error("script_json_parse_error", error=str(e), content=response.content[:500])
            raise ScriptGenerationError(f"LLM returned invalid JSON: {e}") from e

        drafts = [
            ScriptDraft(
                title=str(item.get("title") or f"Script {i + 1}").strip(),
                content=str(item.get("content") or "").strip(),
                reasoning=str(item.get("reasoning") or ""),
                target_metrics=[str(m) for m in item.get("target_metrics") or []],
            )
            for i, item in enumerate(data.get("scripts") or [])
            if isinstance(item, dict)
        ]
        drafts = [d for d in drafts if d.content][:count]
        if not drafts:
            raise ScriptGenerationError("LLM response contained no scripts")

        logger.info(
            "scripts_generated", requested=count, generated=len(drafts), model=response.model
        )
        return drafts
