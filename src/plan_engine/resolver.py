"""Turns a step's parameter sources into concrete values."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from jsonpath_ng.ext import parse as parse_jsonpath
from jsonpath_ng.ext.filter import Filter
from jsonpath_ng.jsonpath import Child, Descendants, Fields, Index, Intersect, Slice, Where
from jsonpath_ng.jsonpath import Union as PathUnion

from .errors import ExtractionFailure, PlanEngineError, UnresolvedDependency
from .plan import DerivedSource, ExecutionStep, InteractiveSource, LiteralSource

logger = logging.getLogger(__name__)

PromptFn = Callable[[str], str]

DEFAULT_PROMPT_TEMPLATE = "Please provide a value for '{name}': "


class StepResultCache:
    """Append-only map of step id to that step's JSON result for one run."""

    def __init__(self) -> None:
        self._results: Dict[str, Any] = {}

    def store(self, step_id: str, value: Any) -> None:
        if step_id in self._results:
            raise PlanEngineError(f"Result for step {step_id} is already stored")
        self._results[step_id] = value

    def get(self, step_id: str) -> Optional[Any]:
        return self._results.get(step_id)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._results

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)


class ParameterResolver:
    def __init__(self, prompt_template: str = DEFAULT_PROMPT_TEMPLATE) -> None:
        self.prompt_template = prompt_template

    def resolve(
        self,
        step: ExecutionStep,
        results: StepResultCache,
        prompt: PromptFn,
    ) -> Dict[str, Any]:
        resolved: Dict[str, Any] = {}
        for name, source in step.parameters.items():
            if isinstance(source, LiteralSource):
                value = source.value
                logger.debug("Resolved param '%s' from STATIC value", name)
            elif isinstance(source, InteractiveSource):
                value = prompt(self.prompt_template.format(name=name)).strip()
                logger.debug("Resolved param '%s' from USER_INPUT", name)
            elif isinstance(source, DerivedSource):
                value = self._extract(name, source, results)
                logger.debug(
                    "Resolved param '%s' from step %s using path '%s'",
                    name,
                    source.from_step_id,
                    source.extraction_path,
                )
            else:
                raise PlanEngineError(f"Unknown parameter source: {source!r}")
            resolved[name] = value
        return resolved

    def _extract(self, name: str, source: DerivedSource, results: StepResultCache) -> Any:
        if source.from_step_id not in results:
            raise UnresolvedDependency(name, source.from_step_id)
        document = results.get(source.from_step_id)

        try:
            expression = parse_jsonpath(source.extraction_path)
            matches = expression.find(document)
        except Exception as exc:
            raise ExtractionFailure(name, source.extraction_path, str(exc)) from exc

        if not matches:
            raise ExtractionFailure(name, source.extraction_path, "path matched nothing")
        if _is_definite(expression) and len(matches) == 1:
            return matches[0].value
        return [match.value for match in matches]


def _is_definite(node: Any) -> bool:
    """True when the path can address at most one value.

    Wildcards, slices, deep scans, filters and unions are indefinite and
    always resolve to a list, even when only one element matches.
    """
    if isinstance(node, (Slice, Descendants, Where, PathUnion, Intersect, Filter)):
        return False
    if isinstance(node, Fields):
        return len(node.fields) == 1 and node.fields[0] != "*"
    if isinstance(node, Index):
        return len(getattr(node, "indices", (None,))) == 1
    if isinstance(node, Child):
        return _is_definite(node.left) and _is_definite(node.right)
    return True
