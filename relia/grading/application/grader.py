"""LlmGrader: asks a designated grading model for a bounded score and reason."""

import time

from relia.core.errors import EvaluationError
from relia.generation.domain.generator import Generator
from relia.grading.domain.observer import GradingObserver
from relia.grading.domain.outcome import GradeOutcome
from relia.grading.domain.response import (
    GRADING_SHAPE,
    MAX_REASON_WORDS,
    MalformedGrading,
    decode_grading,
)

_SYSTEM_PROMPT = f"""\
You are a strict evaluator of outputs produced by a language model. You are \
given the system prompt the model was run with, the user input it received, \
the output it produced, and the criteria the output must satisfy.

Judge the output ONLY against the criteria. Score it from 0 to 1, where 1 \
means every criterion is fully met and 0 means none is. Use intermediate \
values for partial compliance.

Respond with a JSON object and nothing else:
- score: number between 0 and 1
- reason: why the output received this score, at most {MAX_REASON_WORDS} words
"""


class LlmGrader:
    """Grades one produced output against free-text criteria.

    Grading never raises: an unconfigured grader, a failed call or a reply of
    the wrong shape all degrade to a zero score whose reason carries the error.
    """

    def __init__(
        self,
        generator: Generator,
        model_id: str | None,
        observer: GradingObserver,
    ) -> None:
        self._generator = generator
        self._model_id = model_id
        self._observer = observer

    @property
    def model_id(self) -> str | None:
        return self._model_id

    async def grade(
        self,
        system_prompt: str,
        user_input: str,
        output: str,
        criteria: str | None,
    ) -> GradeOutcome:
        """Return a GradeOutcome; empty criteria skip grading with a perfect score."""
        if criteria is None or not criteria.strip():
            return GradeOutcome.not_evaluated()

        try:
            return await self._request(
                system_prompt=system_prompt,
                user_input=user_input,
                output=output,
                criteria=criteria,
            )
        except Exception as exc:
            reason = str(exc)
            self._observer.grading_failed(model_id=self._model_id, reason=reason)
            return GradeOutcome.failure(reason=reason)

    async def _request(
        self, system_prompt: str, user_input: str, output: str, criteria: str
    ) -> GradeOutcome:
        if self._model_id is None:
            raise EvaluationError("no grading model is configured")
        if not self._generator.is_configured(self._model_id):
            raise EvaluationError(
                f"grading model {self._model_id} has no credentials configured"
            )

        self._observer.grading_started(model_id=self._model_id)
        message = (
            f"## System Prompt\n{system_prompt}\n\n"
            f"## User Input\n{user_input}\n\n"
            f"## Output\n{output}\n\n"
            f"## Criteria\n{criteria}"
        )

        start = time.monotonic()
        raw = await self._generator.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_input=message,
            model_id=self._model_id,
            output_shape=GRADING_SHAPE,
        )
        response = decode_grading(raw)
        if isinstance(response, MalformedGrading):
            raise EvaluationError(f"malformed grading response ({response.detail})")

        self._observer.grading_completed(
            model_id=self._model_id,
            score=response.score,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return GradeOutcome(score=response.score, reason=response.reason)
