"""Error taxonomy for plan execution.

Every error here is fatal to the run that raised it. The executor attaches
the failing step id and operation id before letting it propagate.
"""

from __future__ import annotations

from typing import Optional


class PlanEngineError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.step_id: Optional[str] = None
        self.operation_id: Optional[str] = None

    def with_context(self, step_id: str, operation_id: Optional[str]) -> "PlanEngineError":
        self.step_id = step_id
        if operation_id is not None:
            self.operation_id = operation_id
        return self

    def __str__(self) -> str:
        if self.step_id is None:
            return self.message
        return f"Step {self.step_id} ({self.operation_id}) failed: {self.message}"


class SpecificationNotFound(PlanEngineError):
    def __init__(self, alias: str) -> None:
        super().__init__(f"No API specification found for alias: {alias}")
        self.alias = alias


class InvalidPlan(PlanEngineError):
    pass


class UnknownOperation(InvalidPlan):
    def __init__(self, step_id: str, operation_id: str) -> None:
        super().__init__(f"Invalid plan: operation ID '{operation_id}' not found in API spec.")
        self.with_context(step_id, operation_id)


class UnresolvedDependency(PlanEngineError):
    def __init__(self, parameter: str, from_step_id: str) -> None:
        super().__init__(
            f"Parameter '{parameter}' depends on step {from_step_id}, "
            "which has no result"
        )
        self.parameter = parameter
        self.from_step_id = from_step_id


class ExtractionFailure(PlanEngineError):
    def __init__(self, parameter: str, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to resolve parameter '{parameter}' using path '{path}': {reason}"
        )
        self.parameter = parameter
        self.path = path


class UnsupportedMethod(PlanEngineError):
    def __init__(self, method: str) -> None:
        super().__init__(f"Unsupported HTTP method: {method}")
        self.method = method


class ConfigurationError(PlanEngineError):
    pass


class TransportFailure(PlanEngineError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StepExecutionError(PlanEngineError):
    """Unexpected failure inside a step that is not part of the taxonomy."""
