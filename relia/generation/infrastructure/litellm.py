"""LiteLLMGenerator: generator implementation backed by LiteLLM."""

import time
from typing import Any

import litellm

from relia.generation.domain.observer import GenerationObserver
from relia.generation.infrastructure.errors import GenerationError


class LiteLLMGenerator:
    """Sends a system + user message pair to any LiteLLM-supported model.

    When an output shape is supplied it is forwarded as a JSON-schema
    ``response_format`` so providers with structured output honour it.
    Provider timeouts and retries are left to LiteLLM.
    """

    def __init__(
        self,
        observer: GenerationObserver,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        litellm.suppress_debug_info = True
        self._observer = observer
        self._temperature = temperature
        self._max_tokens = max_tokens

    def is_configured(self, model_id: str) -> bool:
        """True when LiteLLM finds the credentials this model's provider needs."""
        report = litellm.validate_environment(model=model_id)
        return bool(report.get("keys_in_environment"))

    async def complete(
        self,
        system_prompt: str,
        user_input: str,
        model_id: str,
        output_shape: dict[str, Any] | None = None,
    ) -> str:
        """Return the model's text response.

        Raises:
            GenerationError: if the call fails or the response carries no content.
        """
        self._observer.generation_started(
            model_id=model_id, structured=output_shape is not None
        )

        options: dict[str, Any] = {}
        if self._temperature is not None:
            options["temperature"] = self._temperature
        if self._max_tokens is not None:
            options["max_tokens"] = self._max_tokens
        if output_shape is not None:
            options["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "output", "schema": output_shape},
            }

        start = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=model_id,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_input},
                ],
                **options,
            )
            content: str | None = response.choices[0].message.content
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.generation_failed(model_id=model_id, reason=reason)
            raise GenerationError(model_id=model_id, reason=reason) from exc

        if content is None:
            reason = "response contained no content"
            self._observer.generation_failed(model_id=model_id, reason=reason)
            raise GenerationError(model_id=model_id, reason=reason)

        self._observer.generation_completed(
            model_id=model_id,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return content
