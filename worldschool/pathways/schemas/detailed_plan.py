"""Detailed Plan Schema.

Validates untrusted generated plans against a schema parameterized by the
exact number of planned days.

Rules:
- ``days`` has exactly N entries, no more and no fewer
- Every pedagogical field is a non-empty string
- Every block has a parseable start time, a positive integer duration and a title
- ``summary`` and ``verifyLocally`` are optional
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints, ValidationError, create_model, field_validator

from worldschool.pathways.types import CamelModel, parse_time_of_day

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class GeneratedBlock(CamelModel):
    start_time: str
    duration: int = Field(gt=0)
    title: NonEmptyStr
    description: str | None = None

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, v: str) -> str:
        parse_time_of_day(v)
        return v


class GeneratedDay(CamelModel):
    day: int = Field(ge=1)
    driving_question: NonEmptyStr
    field_experience: NonEmptyStr
    inquiry_task: NonEmptyStr
    artifact: NonEmptyStr
    reflection_prompt: NonEmptyStr
    critique_step: NonEmptyStr
    schedule_blocks: list[GeneratedBlock]


@lru_cache(maxsize=64)
def detailed_plan_schema(day_count: int) -> type[BaseModel]:
    """Build (once per day count) the plan model requiring exactly ``day_count`` days."""
    if day_count < 1:
        raise ValueError("day_count must be at least 1")
    return create_model(
        f"DetailedPlan{day_count}Days",
        __base__=CamelModel,
        days=(list[GeneratedDay], Field(min_length=day_count, max_length=day_count)),
        summary=(str | None, None),
        verify_locally=(str | None, None),
    )


@dataclass(frozen=True)
class PlanSchemaOk:
    plan: BaseModel


@dataclass(frozen=True)
class PlanSchemaError:
    """Schema failure with one detail line per violation (``days.1.artifact: ...``)."""

    details: list[str]


def _format_errors(error: ValidationError) -> list[str]:
    return [f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}" for err in error.errors()]


def validate_detailed_plan(data: Any, day_count: int) -> PlanSchemaOk | PlanSchemaError:
    """Validate parsed JSON against the detailed plan schema for ``day_count`` days."""
    schema = detailed_plan_schema(day_count)
    try:
        return PlanSchemaOk(plan=schema.model_validate(data))
    except ValidationError as e:
        return PlanSchemaError(details=_format_errors(e))


class AppliedPlan(CamelModel):
    """One-shot plan whose days are numbered from the trip start and carry no dates."""

    days: list[GeneratedDay] = Field(min_length=1)
    summary: str | None = None
    verify_locally: str | None = None


def validate_applied_plan(data: Any) -> PlanSchemaOk | PlanSchemaError:
    try:
        return PlanSchemaOk(plan=AppliedPlan.model_validate(data))
    except ValidationError as e:
        return PlanSchemaError(details=_format_errors(e))
