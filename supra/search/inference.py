"""Invocation of the generative inference backend (blocking and streaming)."""

import json
import time
from typing import Any, AsyncIterator

import structlog
from openai import (
    APIConnectionError,
    APITimeoutError,
    AsyncOpenAI,
    OpenAIError,
    RateLimitError,
)
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from supra.config import get_settings
from supra.metrics import record_llm_call
from supra.models.search import (
    BackendRequest,
    ImageDescriptor,
    RawResponse,
    SelectionResponse,
    TurnInterpretation,
)
from supra.search.errors import InferenceError

logger = structlog.get_logger()

RETRYABLE_ERRORS = (RateLimitError, APITimeoutError, APIConnectionError)


def to_messages(request: BackendRequest) -> list[dict[str, Any]]:
    """Translate a BackendRequest into a single multimodal chat message."""
    parts: list[dict[str, Any]] = []
    for item in request.contents:
        if isinstance(item, ImageDescriptor):
            parts.append({"type": "image_url", "image_url": {"url": item.data_url}})
        else:
            parts.append({"type": "text", "text": item})
    return [{"role": "user", "content": parts}]


class InferenceClient:
    """Stateless client: the full catalog and instructions are resent every call."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        max_attempts: int | None = None,
    ):
        settings = get_settings()
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.inference_timeout_seconds,
            max_retries=0,
        )
        self.max_attempts = max_attempts or settings.inference_max_retries

    def _completion_kwargs(self, request: BackendRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": to_messages(request),
            "temperature": request.temperature,
        }
        if request.response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    async def invoke(self, request: BackendRequest, operation: str = "selection_search") -> RawResponse:
        """Send the request and wait for the complete answer.

        Raises:
            InferenceError: Backend unreachable or returned no content
        """
        start_time = time.time()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.chat.completions.create(
                        **self._completion_kwargs(request)
                    )
        except OpenAIError as e:
            record_llm_call(
                model=request.model,
                operation=operation,
                duration=time.time() - start_time,
            )
            logger.error("inference_call_failed", model=request.model, error=str(e))
            raise InferenceError(f"Inference backend call failed: {e}") from e

        usage = getattr(response, "usage", None)
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        record_llm_call(
            model=request.model,
            operation=operation,
            duration=time.time() - start_time,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

        if not response.choices or not response.choices[0].message.content:
            raise InferenceError("Inference backend returned an empty response")

        return RawResponse(
            text=response.choices[0].message.content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def invoke_stream(
        self,
        request: BackendRequest,
        operation: str = "selection_search_stream",
    ) -> AsyncIterator[str]:
        """Yield raw text fragments as the backend produces them.

        Single consumer, not restartable. The consumer may stop at any point;
        the HTTP stream is closed when the generator is closed.
        """
        start_time = time.time()
        try:
            stream = await self.client.chat.completions.create(
                **self._completion_kwargs(request),
                stream=True,
            )
        except OpenAIError as e:
            logger.error("inference_stream_failed", model=request.model, error=str(e))
            raise InferenceError(f"Inference backend stream failed: {e}") from e

        fragments = 0
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    fragments += 1
                    yield text
        except OpenAIError as e:
            logger.error("inference_stream_interrupted", model=request.model, error=str(e))
            raise InferenceError(f"Inference backend stream interrupted: {e}") from e
        finally:
            await stream.close()
            record_llm_call(
                model=request.model,
                operation=operation,
                duration=time.time() - start_time,
            )
            logger.info("inference_stream_closed", fragments=fragments)


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _parse(text: str, model: type[BaseModel]) -> Any:
    try:
        raw = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise InferenceError(f"Backend response is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise InferenceError(
            f"Backend response must be a JSON object, got {type(raw).__name__}"
        )

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise InferenceError(f"Backend response does not match the expected schema: {e}") from e


def parse_selection_response(text: str) -> SelectionResponse:
    """Parse the backend's selection answer.

    Raises:
        InferenceError: Not JSON, or not a {"results": [...]} object
    """
    return _parse(text, SelectionResponse)


def parse_turn_interpretation(text: str) -> TurnInterpretation:
    """Parse the backend's classification of a conversation turn.

    Raises:
        InferenceError: Not JSON, or intent/results missing or invalid
    """
    return _parse(text, TurnInterpretation)
