"""EvaluationDispatcher: scores a unit's output with the strategy its test case selects."""

import json
from dataclasses import dataclass, field
from typing import Any

from relia.comparison.domain.comparator import compare
from relia.comparison.domain.json_value import JsonValue
from relia.comparison.domain.parser import ParseFailure, Parsed, parse_json
from relia.core.errors import InputValidationError
from relia.evaluation.domain.test_case import (
    EvaluationMode,
    ExpectedOutputType,
    PromptConfig,
    TestCase,
)
from relia.grading.application.grader import LlmGrader
from relia.grading.application.optimizer import OptimizerLoop
from relia.grading.domain.outcome import NOT_EVALUATED, EvaluationRound, GradeOutcome
from relia.schema.domain.node import SchemaNode, build_schema
from relia.schema.domain.validator import kind_of, validate

MAX_SURFACED_VIOLATIONS = 5


@dataclass(frozen=True)
class EvaluationPlan:
    """A test case compiled for evaluation: expected value parsed, schema built."""

    test_case: TestCase
    expected: JsonValue = None
    has_expected: bool = False
    schema: SchemaNode | None = None
    output_shape: dict[str, Any] | None = None


@dataclass(frozen=True)
class EvaluationOutcome:
    """Score and counts for one evaluated output.

    ``output`` is the output the score belongs to; it differs from the
    generated output only when the optimizer revised it.
    """

    output: str
    score: float
    expected_found: int
    expected_total: int
    unexpected_found: int
    reason: str | None = None
    rounds: list[EvaluationRound] = field(default_factory=list)


class EvaluationDispatcher:
    """Selects comparison, schema validation or LLM grading per test case."""

    def __init__(self, grader: LlmGrader, optimizer: OptimizerLoop) -> None:
        self._grader = grader
        self._optimizer = optimizer

    def plan(self, test_case: TestCase, prompt: PromptConfig | None = None) -> EvaluationPlan:
        """Compile a test case, raising InputValidationError before anything runs."""
        default_shape = prompt.expected_schema if prompt is not None else None
        match test_case.evaluation_mode:
            case EvaluationMode.SCHEMA:
                if test_case.evaluation_schema is None:
                    raise InputValidationError(
                        f"test case {test_case.id} uses schema mode without a schema"
                    )
                schema = build_schema(test_case.evaluation_schema)
                shape = (
                    test_case.evaluation_schema
                    if isinstance(test_case.evaluation_schema, dict)
                    else default_shape
                )
                return EvaluationPlan(
                    test_case=test_case, schema=schema, output_shape=shape
                )
            case EvaluationMode.LLM:
                return EvaluationPlan(test_case=test_case, output_shape=default_shape)
            case EvaluationMode.NONE:
                if test_case.expected_output is None:
                    return EvaluationPlan(test_case=test_case, output_shape=default_shape)
                return EvaluationPlan(
                    test_case=test_case,
                    expected=_parse_expected(test_case),
                    has_expected=True,
                    output_shape=default_shape,
                )

    async def evaluate(
        self, plan: EvaluationPlan, system_prompt: str, user_input: str, output: str
    ) -> EvaluationOutcome:
        match plan.test_case.evaluation_mode:
            case EvaluationMode.SCHEMA:
                return self._validate_schema(plan, output)
            case EvaluationMode.LLM:
                return await self._grade(plan, system_prompt, user_input, output)
            case EvaluationMode.NONE:
                return self._compare(plan, output)

    def _compare(self, plan: EvaluationPlan, output: str) -> EvaluationOutcome:
        if not plan.has_expected:
            return EvaluationOutcome(
                output=output,
                score=1.0,
                expected_found=0,
                expected_total=0,
                unexpected_found=0,
                reason=NOT_EVALUATED,
            )

        if plan.test_case.expected_output_type == ExpectedOutputType.STRING:
            actual: JsonValue = output.strip()
        else:
            parsed = parse_json(output)
            if isinstance(parsed, ParseFailure):
                missed = compare(plan.expected, None)
                return EvaluationOutcome(
                    output=output,
                    score=0.0,
                    expected_found=0,
                    expected_total=missed.expected_total,
                    unexpected_found=0,
                    reason=f"Failed to parse output as JSON: {parsed.error}",
                )
            actual = parsed.value

        result = compare(plan.expected, actual)
        return EvaluationOutcome(
            output=output,
            score=result.score,
            expected_found=result.expected_found,
            expected_total=result.expected_total,
            unexpected_found=result.unexpected_found,
        )

    def _validate_schema(self, plan: EvaluationPlan, output: str) -> EvaluationOutcome:
        assert plan.schema is not None
        if plan.test_case.expected_output_type == ExpectedOutputType.STRING:
            value: JsonValue = output
        else:
            match parse_json(output):
                case Parsed(value=parsed_value):
                    value = parsed_value
                case ParseFailure(error=error):
                    return EvaluationOutcome(
                        output=output,
                        score=0.0,
                        expected_found=0,
                        expected_total=1,
                        unexpected_found=0,
                        reason=f"Failed to parse output as JSON: {error}",
                    )

        violations = validate(plan.schema, value)
        if not violations:
            return EvaluationOutcome(
                output=output,
                score=1.0,
                expected_found=1,
                expected_total=1,
                unexpected_found=0,
            )

        surfaced = "; ".join(str(v) for v in violations[:MAX_SURFACED_VIOLATIONS])
        hidden = len(violations) - MAX_SURFACED_VIOLATIONS
        if hidden > 0:
            surfaced += f" (and {hidden} more)"
        return EvaluationOutcome(
            output=output,
            score=0.0,
            expected_found=0,
            expected_total=1,
            unexpected_found=0,
            reason=surfaced,
        )

    async def _grade(
        self, plan: EvaluationPlan, system_prompt: str, user_input: str, output: str
    ) -> EvaluationOutcome:
        criteria = plan.test_case.evaluation_criteria
        if criteria is not None and criteria.strip() and self._optimizer.active:
            optimized = await self._optimizer.run(
                system_prompt=system_prompt,
                user_input=user_input,
                output=output,
                criteria=criteria,
                output_shape=plan.output_shape,
            )
            return _from_grade(optimized.output, optimized.final, optimized.rounds)

        outcome = await self._grader.grade(
            system_prompt=system_prompt,
            user_input=user_input,
            output=output,
            criteria=criteria,
        )
        return _from_grade(output, outcome, [])


def _from_grade(
    output: str, outcome: GradeOutcome, rounds: list[EvaluationRound]
) -> EvaluationOutcome:
    if not outcome.evaluated:
        counts = (0, 0, 0)
    else:
        counts = (1 if outcome.score == 1.0 else 0, 1, 0)
    return EvaluationOutcome(
        output=output,
        score=outcome.score,
        expected_found=counts[0],
        expected_total=counts[1],
        unexpected_found=counts[2],
        reason=outcome.reason,
        rounds=rounds,
    )


def _parse_expected(test_case: TestCase) -> JsonValue:
    raw = test_case.expected_output
    assert raw is not None
    expected_type = test_case.expected_output_type
    if expected_type == ExpectedOutputType.STRING:
        return raw.strip()

    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InputValidationError(
            f"expected output of test case {test_case.id} is not valid JSON ({exc})"
        ) from exc

    actual_kind = kind_of(value)
    if actual_kind != expected_type.value:
        raise InputValidationError(
            f"expected output of test case {test_case.id} is {actual_kind}, "
            f"not {expected_type.value}"
        )
    return value
