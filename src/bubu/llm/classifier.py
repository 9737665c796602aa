import json
from typing import Callable, Optional

from loguru import logger
from openai import OpenAI

from bubu.domain.collaborators import IntentClassifier
from bubu.domain.intents import Intent, IntentResult
from bubu.llm.prompts import SYSTEM_PROMPT, build_tools
from bubu.utils.date_parser import DEFAULT_TIMEZONE, today_in


class OpenAIIntentClassifier(IntentClassifier):
    """Classifies messages with OpenAI function calling, one tool per intent."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        category_names: Optional[Callable[[], list[str]]] = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self.client = OpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.category_names = category_names
        self.timezone = timezone

    def classify(self, text: str, phone: str) -> IntentResult:
        categories = self.category_names() if self.category_names else []
        system = SYSTEM_PROMPT.format(
            today=today_in(self.timezone).isoformat(),
            categories=", ".join(categories) or "(ninguna)",
        )

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": text},
            ],
            tools=build_tools(categories),
            tool_choice="auto",
            temperature=0.3,
        )
        message = response.choices[0].message

        if not message.tool_calls:
            logger.debug("LLM answered without a tool call: {}", message.content)
            return IntentResult(Intent.GENERAL_CONVERSATION, {"message_kind": "otro"})

        call = message.tool_calls[0].function
        try:
            arguments = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as e:
            logger.error("Failed to parse tool arguments for {}: {}", call.name, e)
            return IntentResult(Intent.UNKNOWN)

        logger.debug("LLM tool call {} {}", call.name, arguments)
        return IntentResult(Intent.parse(call.name), arguments if isinstance(arguments, dict) else {})
