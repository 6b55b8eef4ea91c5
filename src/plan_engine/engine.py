"""Engine facade: executes a plan against the catalog learned for an alias."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import Settings
from .errors import SpecificationNotFound
from .executor import PlanExecutor
from .logging import configure_logging
from .plan import ExecutionPlan, Planner
from .resolver import ParameterResolver
from .stores import CatalogProvider, ConsolePrompt, CredentialProvider, HttpClient, InteractiveInput
from .transport import HttpxClient
from .validator import validate_plan

logger = logging.getLogger(__name__)


class PlanEngine:
    """
    Runs execution plans for learned APIs.

    The catalog and credential for an alias are fetched once per run and
    treated as read-only for its duration. A missing credential is not an
    error here; requests simply go out unauthenticated.
    """

    def __init__(
        self,
        catalogs: CatalogProvider,
        credentials: CredentialProvider,
        prompt: InteractiveInput,
        executor: PlanExecutor,
    ) -> None:
        self.catalogs = catalogs
        self.credentials = credentials
        self.prompt = prompt
        self.executor = executor

    def plan(self, request: str, alias: str, planner: Planner, autofill: bool = False) -> ExecutionPlan:
        """Ask the planner for a plan over the alias's catalog and validate it.

        Nothing is sent; the caller shows the plan and decides whether to execute.
        """
        catalog = self.catalogs.get_catalog(alias)
        if catalog is None:
            raise SpecificationNotFound(alias)

        plan = planner.create_plan(request, catalog, autofill)
        validate_plan(plan, catalog)
        logger.info("Planned %s step(s) for alias=%s autofill=%s", len(plan.steps), alias, autofill)
        return plan

    def execute(self, plan: ExecutionPlan, alias: str) -> Any:
        catalog = self.catalogs.get_catalog(alias)
        if catalog is None:
            raise SpecificationNotFound(alias)

        credential = self.credentials.get_credential(alias)
        if credential is None:
            logger.info("No credential stored for alias=%s; sending requests unauthenticated", alias)

        logger.info("Executing plan with %s step(s) for alias=%s", len(plan.steps), alias)
        return self.executor.execute(plan, catalog, credential, self.prompt)


def build_engine(
    settings: Settings,
    catalogs: CatalogProvider,
    credentials: CredentialProvider,
    prompt: Optional[InteractiveInput] = None,
    http_client: Optional[HttpClient] = None,
) -> PlanEngine:
    configure_logging(settings.engine_log_level)
    executor = PlanExecutor(
        http_client=http_client or HttpxClient.from_settings(settings),
        resolver=ParameterResolver(prompt_template=settings.engine_prompt_template),
    )
    return PlanEngine(
        catalogs=catalogs,
        credentials=credentials,
        prompt=prompt or ConsolePrompt(),
        executor=executor,
    )
