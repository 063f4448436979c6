"""OptimizerLoop: bounded revise-and-regrade feedback loop for LLM-graded outputs."""

from typing import Any

from relia.generation.domain.generator import Generator
from relia.grading.application.grader import LlmGrader
from relia.grading.domain.observer import GradingObserver
from relia.grading.domain.outcome import EvaluationRound, GradeOutcome

_SYSTEM_PROMPT = """\
You revise outputs produced by a language model so that they satisfy a set of \
criteria. You are given the original system prompt and user input, the \
criteria, the latest output, and the score and reason an evaluator gave it.

Produce an improved output that addresses the evaluator's reason. Keep \
everything that was already correct. Respond with the revised output only, \
in the same format the original system prompt asks for, with no commentary.
"""


class OptimizationResult:
    """Ordered rounds of one optimization plus the grading of the final round."""

    def __init__(self, rounds: list[EvaluationRound], final: GradeOutcome) -> None:
        self.rounds = rounds
        self.final = final

    @property
    def output(self) -> str:
        return self.rounds[-1].output


class OptimizerLoop:
    """Grades an output, then repeatedly asks an optimizer model for a revision.

    Each revision request carries only the latest output and its latest score
    and reason. The loop stops after ``max_iterations`` revisions, when a score
    reaches ``score_threshold``, or when a revision or its grading fails, in
    which case the last successfully graded round stands.
    """

    def __init__(
        self,
        generator: Generator,
        grader: LlmGrader,
        model_id: str | None,
        max_iterations: int,
        score_threshold: float | None,
        observer: GradingObserver,
    ) -> None:
        self._generator = generator
        self._grader = grader
        self._model_id = model_id
        self._max_iterations = max_iterations
        self._score_threshold = score_threshold
        self._observer = observer

    @property
    def active(self) -> bool:
        return self._model_id is not None and self._max_iterations > 0

    async def run(
        self,
        system_prompt: str,
        user_input: str,
        output: str,
        criteria: str,
        output_shape: dict[str, Any] | None = None,
    ) -> OptimizationResult:
        latest = await self._grader.grade(
            system_prompt=system_prompt,
            user_input=user_input,
            output=output,
            criteria=criteria,
        )
        rounds = [
            EvaluationRound(
                round_number=0, output=output, score=latest.score, reason=latest.reason
            )
        ]
        self._observer.optimizer_round_completed(round_number=0, score=latest.score)

        if latest.failed:
            return self._stop(rounds, latest, stop_reason="grading_failed")

        for round_number in range(1, self._max_iterations + 1):
            if self._reached_threshold(latest.score):
                return self._stop(rounds, latest, stop_reason="threshold_reached")

            try:
                revised = await self._revise(
                    system_prompt=system_prompt,
                    user_input=user_input,
                    criteria=criteria,
                    latest_round=rounds[-1],
                    output_shape=output_shape,
                )
            except Exception as exc:
                self._observer.grading_failed(model_id=self._model_id, reason=str(exc))
                return self._stop(rounds, latest, stop_reason="revision_failed")

            graded = await self._grader.grade(
                system_prompt=system_prompt,
                user_input=user_input,
                output=revised,
                criteria=criteria,
            )
            if graded.failed:
                return self._stop(rounds, latest, stop_reason="grading_failed")

            latest = graded
            rounds.append(
                EvaluationRound(
                    round_number=round_number,
                    output=revised,
                    score=graded.score,
                    reason=graded.reason,
                )
            )
            self._observer.optimizer_round_completed(
                round_number=round_number, score=graded.score
            )

        stop_reason = (
            "threshold_reached"
            if self._reached_threshold(latest.score)
            else "iterations_exhausted"
        )
        return self._stop(rounds, latest, stop_reason=stop_reason)

    def _reached_threshold(self, score: float) -> bool:
        return self._score_threshold is not None and score >= self._score_threshold

    async def _revise(
        self,
        system_prompt: str,
        user_input: str,
        criteria: str,
        latest_round: EvaluationRound,
        output_shape: dict[str, Any] | None,
    ) -> str:
        assert self._model_id is not None
        message = (
            f"## Original System Prompt\n{system_prompt}\n\n"
            f"## User Input\n{user_input}\n\n"
            f"## Criteria\n{criteria}\n\n"
            f"## Latest Output\n{latest_round.output}\n\n"
            f"## Latest Evaluation\nScore: {latest_round.score}\n"
            f"Reason: {latest_round.reason}"
        )
        return await self._generator.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_input=message,
            model_id=self._model_id,
            output_shape=output_shape,
        )

    def _stop(
        self, rounds: list[EvaluationRound], final: GradeOutcome, stop_reason: str
    ) -> OptimizationResult:
        self._observer.optimizer_stopped(
            rounds=len(rounds), final_score=final.score, stop_reason=stop_reason
        )
        return OptimizationResult(rounds=rounds, final=final)
