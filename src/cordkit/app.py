"""
Application context: registries of services, modules and singletons, the
event bus and the startup stages.

Startup runs the stages LOAD, POST_LOAD and READY in order. Each stage runs
every registered service, then every module, and reports one StageResult per
component. Whether a failure aborts the rest of the stage is decided by the
stage's StagePolicy.
"""

import logging
from enum import Enum
from typing import Any, ClassVar

from attrs import frozen

from cordkit.config import BotConfig
from cordkit.events import EventBus
from cordkit.exceptions.core import MissingDependencyError

logger = logging.getLogger(__name__)

SAVE_DATA_EVENT = "saveData"


class DependencyKind(Enum):
    SERVICE = "services"
    MODULE = "modules"
    SINGLETON = "singletons"


class Stage(Enum):
    LOAD = "load"
    POST_LOAD = "post_load"
    READY = "ready"


class StagePolicy(Enum):
    ABORT = "abort"  # Stop the stage at the first failing component
    CONTINUE = "continue"  # Log the failure and run the remaining components


DEFAULT_POLICIES: dict[Stage, StagePolicy] = {
    Stage.LOAD: StagePolicy.ABORT,
    Stage.POST_LOAD: StagePolicy.CONTINUE,
    Stage.READY: StagePolicy.CONTINUE,
}


@frozen
class StageResult:
    """The outcome of running one stage of one component."""

    component: str
    stage: Stage
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BaseComponent:
    """
    Base of services and modules.

    Subclasses override the ``on_*`` hooks and ``register_listeners``.
    """

    kind: ClassVar[DependencyKind]

    def __init__(self, name: str | None = None):
        self.name = name or type(self).__name__
        self.app: "ApplicationContext | None" = None
        self.loaded = False
        self.logger = logging.getLogger(f"cordkit.{self.kind.value}.{self.name}")

    def register_listeners(self, app: "ApplicationContext") -> None:
        """Subscribe this component's event handlers to the app's bus."""
        pass

    def on_load(self, app: "ApplicationContext") -> None:
        pass

    def on_post_load(self, app: "ApplicationContext") -> None:
        pass

    def on_ready(self, app: "ApplicationContext") -> None:
        pass

    def load(self, app: "ApplicationContext") -> StageResult:
        """Load this component once; later calls are no-ops."""
        if self.loaded:
            return StageResult(self.name, Stage.LOAD)

        def run():
            self.app = app
            self.register_listeners(app)
            self.on_load(app)
            self.loaded = True

        return self._run_stage(Stage.LOAD, run)

    def post_load(self, app: "ApplicationContext") -> StageResult:
        return self._run_stage(Stage.POST_LOAD, lambda: self.on_post_load(app))

    def ready(self, app: "ApplicationContext") -> StageResult:
        return self._run_stage(Stage.READY, lambda: self.on_ready(app))

    def _run_stage(self, stage: Stage, func) -> StageResult:
        try:
            func()
        except Exception as e:
            logger.error("Error in %s.%s()", self.name, stage.value, exc_info=True)
            return StageResult(self.name, stage, e)
        return StageResult(self.name, stage)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, loaded={self.loaded})"


class BotService(BaseComponent):
    """Provides core functionality other components depend on."""

    kind = DependencyKind.SERVICE


class BotModule(BaseComponent):
    """Provides user facing functionality."""

    kind = DependencyKind.MODULE


class ApplicationContext:
    """
    The explicit container every component is started with.

    Params:
        config: The bot configuration
        policies: Failure policy per stage, defaults to DEFAULT_POLICIES
    """

    def __init__(
        self,
        config: BotConfig | None = None,
        policies: dict[Stage, StagePolicy] | None = None,
    ):
        self.config = config or BotConfig()
        self.policies = {**DEFAULT_POLICIES, **(policies or {})}
        self.event_bus = EventBus()
        self.services: dict[str, BotService] = {}
        self.modules: dict[str, BotModule] = {}
        self.singletons: dict[str, Any] = {}

    def _registry(self, kind: DependencyKind) -> dict[str, Any]:
        if kind == DependencyKind.SERVICE:
            return self.services
        if kind == DependencyKind.MODULE:
            return self.modules
        return self.singletons

    def add_service(self, service: BotService) -> "ApplicationContext":
        self.services[service.name] = service
        return self

    def add_module(self, module: BotModule) -> "ApplicationContext":
        self.modules[module.name] = module
        return self

    def add_singleton(self, name: str, value: Any) -> "ApplicationContext":
        self.singletons[name] = value
        return self

    def resolve(self, kind: DependencyKind, name: str) -> Any | None:
        """Look up a dependency, None if absent."""
        value = self._registry(kind).get(name)
        if value is None:
            logger.warning("Could not resolve dependency(name: %s, kind: %s)", name, kind.value)
        return value

    def require(self, kind: DependencyKind, name: str) -> Any:
        """
        Look up a dependency and load it if it is a component.

        Raises:
            MissingDependencyError: If the dependency is absent
        """
        value = self._registry(kind).get(name)
        if value is None:
            raise MissingDependencyError(kind.value, name)
        self.load_if_loadable(value)
        return value

    def load_if_loadable(self, value: Any) -> Any:
        """Load the value if it is a component that is not loaded yet."""
        if isinstance(value, BaseComponent) and not value.loaded:
            value.load(self)
        return value

    def components(self) -> list[BaseComponent]:
        return [*self.services.values(), *self.modules.values()]

    def run_stage(self, stage: Stage) -> list[StageResult]:
        """
        Run one stage on every service, then every module.

        Returns:
            One result per component that ran
        """
        policy = self.policies[stage]
        results = []
        for component in self.components():
            if stage == Stage.LOAD:
                result = component.load(self)
            elif stage == Stage.POST_LOAD:
                result = component.post_load(self)
            else:
                result = component.ready(self)
            results.append(result)

            if not result.ok and policy == StagePolicy.ABORT:
                logger.error("Stage %s aborted after %s failed", stage.value, component.name)
                break
        return results

    def load_all(self) -> list[StageResult]:
        """Run the LOAD and POST_LOAD stages, skipping POST_LOAD if LOAD aborted."""
        results = self.run_stage(Stage.LOAD)
        if self._aborted(Stage.LOAD, results):
            return results
        return results + self.run_stage(Stage.POST_LOAD)

    def ready_all(self) -> list[StageResult]:
        return self.run_stage(Stage.READY)

    def _aborted(self, stage: Stage, results: list[StageResult]) -> bool:
        return self.policies[stage] == StagePolicy.ABORT and any(not r.ok for r in results)

    async def save_data(self, reason: str) -> None:
        """Ask every component to persist its data."""
        await self.event_bus.call(SAVE_DATA_EVENT, {"reason": reason})
