"""
Flashdeck - LLM Client
Structured-output access to the text-generation provider with telemetry and
a bounded retry for malformed output.
"""
import logging
from typing import Optional, Type, TypeVar

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel

from flashdeck.ai.telemetry import get_tracer, trace_llm_call
from flashdeck.core.config import settings

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class StructuredOutputError(Exception):
    """The provider answered, but never with an object matching the schema."""
    pass


class LLMClient:
    """
    LLM client used by the flashcard generator.

    Features:
    - OpenAI chat models through LangChain
    - Structured output validated against a Pydantic schema
    - Retry of malformed output, bounded by ``LLM_MAX_RETRIES`` attempts
    - Token usage recorded on the current span
    """

    def __init__(
        self,
        model: str = None,
        api_key: str = None,
        temperature: float = None,
        timeout: int = None,
        max_attempts: int = None,
    ):
        self.model = model or settings.OPENAI_MODEL
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.LLM_MAX_RETRIES

        self._llm = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def llm(self):
        """Lazy-load the chat model."""
        if self._llm is None:
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                temperature=self.temperature,
                timeout=self.timeout,
            )
        return self._llm

    async def generate_structured(
        self,
        prompt: str,
        schema: Type[SchemaT],
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> SchemaT:
        """
        Ask the model for an object of the given schema.

        Output that does not parse into ``schema`` is retried up to
        ``max_attempts`` times in total; provider errors propagate unchanged.

        Raises:
            StructuredOutputError: If no attempt produced a valid object
        """
        tracer = get_tracer()

        with tracer.start_as_current_span("llm.generate_structured") as span:
            span.set_attribute("llm.model", self.model)
            span.set_attribute("agent.name", agent_name)
            span.set_attribute("llm.schema", schema.__name__)

            messages = []
            if system_prompt:
                messages.append(SystemMessage(content=system_prompt))
            messages.append(HumanMessage(content=prompt))
            span.set_attribute("llm.prompt_length", len(prompt))

            structured = self.llm.with_structured_output(
                schema,
                method="function_calling",
                include_raw=True,
            )

            last_error: Optional[BaseException] = None
            for attempt in range(1, self.max_attempts + 1):
                result = await structured.ainvoke(messages)
                self._record_usage(result.get("raw"))

                parsed = result.get("parsed")
                last_error = result.get("parsing_error")
                if parsed is not None and last_error is None:
                    span.set_attribute("llm.attempts", attempt)
                    return parsed

                logger.warning(
                    "%s: attempt %d/%d returned output not matching %s: %s",
                    agent_name, attempt, self.max_attempts, schema.__name__, last_error,
                )

            span.set_attribute("llm.attempts", self.max_attempts)
            raise StructuredOutputError(
                f"No object generated: response did not match schema ({last_error})"
            )

    def _record_usage(self, raw) -> None:
        usage = getattr(raw, "usage_metadata", None) or {}
        tokens_prompt = usage.get("input_tokens", 0)
        tokens_completion = usage.get("output_tokens", 0)
        trace_llm_call(
            model=self.model,
            prompt_tokens=tokens_prompt,
            completion_tokens=tokens_completion,
            total_tokens=usage.get("total_tokens", tokens_prompt + tokens_completion),
        )


# Default client instance
_default_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the default LLM client instance."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client
