import pytest

from worldschool.pathways.schemas.detailed_plan import (
    PlanSchemaError,
    PlanSchemaOk,
    detailed_plan_schema,
    validate_applied_plan,
    validate_detailed_plan,
)


def _plan(day_json, count: int) -> dict:
    return {"days": [day_json(i + 1, f"2025-03-{10 + i}") for i in range(count)]}


def test_valid_plan(day_json):
    result = validate_detailed_plan(_plan(day_json, 2), 2)

    assert isinstance(result, PlanSchemaOk)
    assert len(result.plan.days) == 2
    assert result.plan.days[0].schedule_blocks[0].title == "Morning sketch walk"
    assert result.plan.summary is None


@pytest.mark.parametrize("count", [1, 3])
def test_day_count_must_match_exactly(day_json, count):
    result = validate_detailed_plan(_plan(day_json, count), 2)

    assert isinstance(result, PlanSchemaError)
    assert any(detail.startswith("days:") for detail in result.details)


def test_empty_pedagogical_field_reports_path(day_json):
    data = _plan(day_json, 2)
    data["days"][1]["artifact"] = "   "

    result = validate_detailed_plan(data, 2)

    assert isinstance(result, PlanSchemaError)
    assert any(detail.startswith("days.1.artifact:") for detail in result.details)


def test_block_needs_parseable_start_time_and_positive_duration(day_json):
    data = _plan(day_json, 1)
    data["days"][0]["scheduleBlocks"] = [
        {"startTime": "sometime", "duration": 30, "title": "Walk"},
        {"startTime": "09:00", "duration": 0, "title": "Walk"},
    ]

    result = validate_detailed_plan(data, 1)

    assert isinstance(result, PlanSchemaError)
    assert any(d.startswith("days.0.scheduleBlocks.0.startTime") for d in result.details)
    assert any(d.startswith("days.0.scheduleBlocks.1.duration") for d in result.details)


def test_non_object_is_rejected():
    result = validate_detailed_plan(["not", "a", "plan"], 1)

    assert isinstance(result, PlanSchemaError)
    assert result.details[0].startswith("<root>:")


def test_optional_fields_accepted(day_json):
    data = _plan(day_json, 1)
    data["summary"] = "A week of tiles"
    data["verifyLocally"] = "Check opening hours"

    result = validate_detailed_plan(data, 1)

    assert result.plan.verify_locally == "Check opening hours"


def test_schema_cached_per_day_count():
    assert detailed_plan_schema(4) is detailed_plan_schema(4)
    assert detailed_plan_schema(4) is not detailed_plan_schema(5)


def test_schema_rejects_zero_days():
    with pytest.raises(ValueError):
        detailed_plan_schema(0)


def test_applied_plan_needs_at_least_one_day():
    result = validate_applied_plan({"days": []})

    assert isinstance(result, PlanSchemaError)


def test_applied_plan_any_day_count(day_json):
    result = validate_applied_plan(_plan(day_json, 5))

    assert isinstance(result, PlanSchemaOk)
