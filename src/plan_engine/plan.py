"""Execution plan models and helpers for planner output.

Plans arrive from an external planner as JSON. Each step names an
operation from the catalog and declares, per parameter, where its value
comes from: a literal in the plan (``STATIC``), the operator at run time
(``USER_INPUT``) or a JSONPath extraction from an earlier step's result
(``FROM_STEP``).
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Mapping, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidPlan
from .models import Catalog

# Parameter name under which a planner supplies the complete request body.
WHOLE_BODY_KEY = "__requestBody__"


class LiteralSource(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: Literal["STATIC"] = "STATIC"
    value: Any = None


class InteractiveSource(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: Literal["USER_INPUT"] = "USER_INPUT"


class DerivedSource(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    source: Literal["FROM_STEP"] = "FROM_STEP"
    from_step_id: str = Field(alias="stepId")
    extraction_path: str = Field(alias="jsonPath")


ParameterSource = Annotated[
    Union[LiteralSource, InteractiveSource, DerivedSource],
    Field(discriminator="source"),
]


class ExecutionStep(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    step_id: str = Field(alias="stepId")
    operation_id: str = Field(alias="operationId")
    reasoning: str = ""
    parameters: Dict[str, ParameterSource] = Field(default_factory=dict)


class ExecutionPlan(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    steps: List[ExecutionStep] = Field(default_factory=list)


class Planner(Protocol):
    def create_plan(self, prompt: str, catalog: Catalog, autofill: bool) -> ExecutionPlan:
        ...


def parse_plan(raw: Union[str, Mapping[str, Any]]) -> ExecutionPlan:
    """Build an ExecutionPlan from planner output.

    Accepts either an already-decoded mapping or the planner's raw text,
    optionally wrapped in a markdown code fence.
    """
    if isinstance(raw, str):
        data = _decode_json(raw)
    else:
        data = raw
    if not isinstance(data, Mapping):
        raise InvalidPlan("Execution plan must be a JSON object")
    try:
        return ExecutionPlan.model_validate(data)
    except ValidationError as exc:
        raise InvalidPlan(f"Execution plan does not match the expected schema: {exc}") from exc


def format_plan(plan: ExecutionPlan, catalog: Catalog) -> str:
    lines: List[str] = []
    for step in plan.steps:
        operation = catalog.get_operation(step.operation_id)
        target = (
            f"{operation.method.upper()} {operation.path}"
            if operation
            else f"<unknown operation {step.operation_id}>"
        )
        lines.append(f"Step {step.step_id}: {target}")
        if step.reasoning:
            lines.append(f"  Reason: {step.reasoning}")
        for name, source in step.parameters.items():
            lines.append(f"  - {name}: {_describe_source(source)}")
    return "\n".join(lines)


def _describe_source(source: Any) -> str:
    if isinstance(source, LiteralSource):
        return f"static value {json.dumps(source.value, default=str)}"
    if isinstance(source, InteractiveSource):
        return "ask at execution time"
    if isinstance(source, DerivedSource):
        return f"from step {source.from_step_id} at {source.extraction_path}"
    raise TypeError(f"Unknown parameter source: {source!r}")


def _decode_json(raw: str) -> Any:
    text = raw.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        inner = lines[1:-1] if lines[-1].strip() == "```" else lines[1:]
        text = "\n".join(inner).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    start, end = text.find("{"), text.rfind("}") + 1
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            raise InvalidPlan(f"Execution plan is not valid JSON: {exc}") from exc
    raise InvalidPlan("Execution plan is not valid JSON")
