"""Structural checks run on a plan before any step executes."""

from __future__ import annotations

import logging
from typing import Set

from .errors import InvalidPlan, UnknownOperation
from .models import Catalog
from .plan import ExecutionPlan

logger = logging.getLogger(__name__)


def validate_plan(plan: ExecutionPlan, catalog: Catalog) -> None:
    if not plan.steps:
        raise InvalidPlan("Execution plan is empty")

    seen: Set[str] = set()
    for step in plan.steps:
        if step.step_id in seen:
            raise InvalidPlan(f"Execution plan repeats step id '{step.step_id}'")
        seen.add(step.step_id)
        if catalog.get_operation(step.operation_id) is None:
            raise UnknownOperation(step.step_id, step.operation_id)

    logger.info("Validated execution plan with %s step(s)", len(plan.steps))
