"""Sequential plan execution.

A run walks the plan in order: resolve parameters, synthesize the request,
send it, store the JSON result under the step id. The first failure aborts
the run. Steps that already ran are not undone.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

import httpx

from .errors import PlanEngineError, StepExecutionError, TransportFailure, UnknownOperation
from .logging import redact_payload
from .models import Catalog
from .plan import ExecutionPlan, ExecutionStep
from .resolver import ParameterResolver, PromptFn, StepResultCache
from .stores import HttpClient
from .synthesizer import RequestSynthesizer
from .validator import validate_plan

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class PlanRun:
    def __init__(
        self,
        plan: ExecutionPlan,
        catalog: Catalog,
        credential: Optional[str],
        prompt: PromptFn,
        http_client: HttpClient,
        resolver: ParameterResolver,
        synthesizer: RequestSynthesizer,
    ) -> None:
        self.plan = plan
        self.catalog = catalog
        self.credential = credential
        self.prompt = prompt
        self.http_client = http_client
        self.resolver = resolver
        self.synthesizer = synthesizer

        self.state = RunState.IDLE
        self.step_index: Optional[int] = None
        self.results = StepResultCache()
        self.final_result: Any = None

    def run(self) -> Any:
        if self.state != RunState.IDLE:
            raise PlanEngineError(f"Plan run already {self.state.value}")

        try:
            validate_plan(self.plan, self.catalog)
        except PlanEngineError:
            self.state = RunState.ABORTED
            raise

        self.state = RunState.RUNNING
        last_result: Any = None
        total = len(self.plan.steps)
        for index, step in enumerate(self.plan.steps):
            self.step_index = index
            logger.info(
                "Executing step %s (%s/%s): %s", step.step_id, index + 1, total, step.operation_id
            )
            try:
                last_result = self._execute_step(step)
            except PlanEngineError as exc:
                self._abort(step, exc)
                raise exc.with_context(step.step_id, step.operation_id)
            except httpx.HTTPError as exc:
                self._abort(step, exc)
                raise TransportFailure(str(exc)).with_context(
                    step.step_id, step.operation_id
                ) from exc
            except Exception as exc:
                self._abort(step, exc)
                raise StepExecutionError(
                    f"Execution failed: {exc}"
                ).with_context(step.step_id, step.operation_id) from exc
            self.results.store(step.step_id, last_result)
            logger.info("Step %s successful.", step.step_id)

        self.state = RunState.COMPLETED
        self.final_result = last_result
        return last_result

    def _execute_step(self, step: ExecutionStep) -> Any:
        operation = self.catalog.get_operation(step.operation_id)
        if operation is None:
            raise UnknownOperation(step.step_id, step.operation_id)

        params = self.resolver.resolve(step, self.results, self.prompt)
        logger.debug("Step %s resolved parameters: %s", step.step_id, redact_payload(params))
        request = self.synthesizer.build(operation, params, self.catalog, self.credential)
        return self.http_client.send(request)

    def _abort(self, step: ExecutionStep, exc: Exception) -> None:
        self.state = RunState.ABORTED
        logger.error(
            "Step %s (%s) failed: %s",
            step.step_id,
            step.operation_id,
            getattr(exc, "message", None) or exc,
        )


class PlanExecutor:
    def __init__(
        self,
        http_client: HttpClient,
        resolver: Optional[ParameterResolver] = None,
        synthesizer: Optional[RequestSynthesizer] = None,
    ) -> None:
        self.http_client = http_client
        self.resolver = resolver or ParameterResolver()
        self.synthesizer = synthesizer or RequestSynthesizer()

    def start(
        self,
        plan: ExecutionPlan,
        catalog: Catalog,
        credential: Optional[str],
        prompt: PromptFn,
    ) -> PlanRun:
        return PlanRun(
            plan=plan,
            catalog=catalog,
            credential=credential,
            prompt=prompt,
            http_client=self.http_client,
            resolver=self.resolver,
            synthesizer=self.synthesizer,
        )

    def execute(
        self,
        plan: ExecutionPlan,
        catalog: Catalog,
        credential: Optional[str],
        prompt: PromptFn,
    ) -> Any:
        return self.start(plan, catalog, credential, prompt).run()
