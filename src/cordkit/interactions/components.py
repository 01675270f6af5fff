"""
Trigger, condition and action components of interactions.

Components are identified by their key ``<type>::<name>``. Named components
registered as base components on an InteractionManager form the closed table
used to deserialize persisted interactions: a plain component is saved as its
key, a parameterized one as ``{"key": ..., **parameters}`` and re-created from
its base component with those parameters.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from cordkit.exceptions.core import InteractionError

if TYPE_CHECKING:
    from cordkit.interactions.interaction import Interaction, InteractionContext


class ComponentType(Enum):
    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"


class InteractionSerializationLogic(ABC):
    """Saves components to and loads them from JSON compatible data."""

    @abstractmethod
    def save_component(self, component: "InteractionComponent") -> Any:
        pass

    @abstractmethod
    def load_component(self, data: Any) -> "InteractionComponent":
        pass


class InteractionComponent(ABC):
    """Base of triggers, conditions and actions."""

    component_type: ClassVar[ComponentType]
    name: str | None = None

    @property
    def is_serializable(self) -> bool:
        return self.name is not None

    @property
    def is_parameterized(self) -> bool:
        return False

    @property
    def key(self) -> str:
        return f"{self.component_type.value}::{self.name}"

    def save_parameters(
        self, logic: InteractionSerializationLogic, data: dict[str, Any]
    ) -> None:
        """Write the parameters of this component into the data dict."""
        pass

    def create_with_parameters(
        self, logic: InteractionSerializationLogic, data: dict[str, Any]
    ) -> "InteractionComponent":
        """Create a new instance bound to the parameters in the data dict."""
        raise InteractionError(f"Component {self.key} takes no parameters")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key})"


class Trigger(InteractionComponent):
    """Fires interactions; registering subscribes an interaction to it."""

    component_type = ComponentType.TRIGGER

    @abstractmethod
    def register(self, interaction: "Interaction") -> None:
        pass

    @abstractmethod
    def unregister(self, interaction: "Interaction") -> None:
        pass

    def or_(self, other: "Trigger") -> "TriggerList":
        """Fire on either this trigger or the other one."""
        return TriggerList([self, other])


class TriggerList(Trigger):
    name = "list"

    def __init__(self, triggers: list[Trigger] | None = None):
        self.triggers = list(triggers or [])

    @property
    def is_serializable(self) -> bool:
        return all(t.is_serializable for t in self.triggers)

    @property
    def is_parameterized(self) -> bool:
        return True

    def register(self, interaction: "Interaction") -> None:
        for trigger in self.triggers:
            trigger.register(interaction)

    def unregister(self, interaction: "Interaction") -> None:
        for trigger in self.triggers:
            trigger.unregister(interaction)

    def or_(self, other: Trigger) -> "TriggerList":
        self.triggers.append(other)
        return self

    def save_parameters(self, logic, data):
        data["list"] = [logic.save_component(t) for t in self.triggers]

    def create_with_parameters(self, logic, data):
        return TriggerList([logic.load_component(t) for t in data.get("list", [])])


class Condition(InteractionComponent):
    """Decides whether a fired interaction runs its actions."""

    component_type = ComponentType.CONDITION

    @abstractmethod
    def check(self, ctx: "InteractionContext") -> bool:
        pass

    def or_(self, other: "Condition") -> "Condition":
        """Pass if either this condition or the other one passes."""
        return OrConditionList([self, other])

    def invert(self) -> "Condition":
        return InvertedCondition(self)


class OrConditionList(Condition):
    name = "orList"

    def __init__(self, conditions: list[Condition] | None = None):
        self.conditions = list(conditions or [])

    @property
    def is_serializable(self) -> bool:
        return all(c.is_serializable for c in self.conditions)

    @property
    def is_parameterized(self) -> bool:
        return True

    def check(self, ctx: "InteractionContext") -> bool:
        return any(c.check(ctx) for c in self.conditions)

    def or_(self, other: Condition) -> Condition:
        self.conditions.append(other)
        return self

    def save_parameters(self, logic, data):
        data["list"] = [logic.save_component(c) for c in self.conditions]

    def create_with_parameters(self, logic, data):
        return OrConditionList([logic.load_component(c) for c in data.get("list", [])])


class InvertedCondition(Condition):
    name = "inverted"

    def __init__(self, base: Condition | None = None):
        self.base = base

    @property
    def is_serializable(self) -> bool:
        return self.base is None or self.base.is_serializable

    @property
    def is_parameterized(self) -> bool:
        return True

    def check(self, ctx: "InteractionContext") -> bool:
        return not self.base.check(ctx)

    def invert(self) -> Condition:
        return self.base

    def save_parameters(self, logic, data):
        data["base"] = logic.save_component(self.base)

    def create_with_parameters(self, logic, data):
        return InvertedCondition(logic.load_component(data["base"]))


class Action(InteractionComponent):
    """A side effect of a fired interaction; may return an awaitable."""

    component_type = ComponentType.ACTION

    @abstractmethod
    def execute(self, ctx: "InteractionContext") -> Any:
        pass


def _params_from(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k != "key"}


class ParamCondition(Condition):
    """
    A named condition template bound to a parameter dict.

    ``with_params`` creates a new bound instance per parameter set, so one
    template yields many serializable conditions.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[Any, dict[str, Any]], bool],
        params: dict[str, Any] | None = None,
    ):
        self.name = name
        self.func = func
        self.params = dict(params or {})

    @property
    def is_parameterized(self) -> bool:
        return True

    def check(self, ctx: "InteractionContext") -> bool:
        return self.func(ctx.arguments, self.params)

    def with_params(self, params: dict[str, Any] | None = None, **kwargs: Any) -> "ParamCondition":
        return ParamCondition(self.name, self.func, {**(params or {}), **kwargs})

    def save_parameters(self, logic, data):
        data.update(self.params)

    def create_with_parameters(self, logic, data):
        return self.with_params(_params_from(data))


class ParamAction(Action):
    """A named action template bound to a parameter dict."""

    def __init__(
        self,
        name: str,
        func: Callable[[Any, dict[str, Any]], Any],
        params: dict[str, Any] | None = None,
    ):
        self.name = name
        self.func = func
        self.params = dict(params or {})

    @property
    def is_parameterized(self) -> bool:
        return True

    def execute(self, ctx: "InteractionContext") -> Any:
        return self.func(ctx.arguments, self.params)

    def with_params(self, params: dict[str, Any] | None = None, **kwargs: Any) -> "ParamAction":
        return ParamAction(self.name, self.func, {**(params or {}), **kwargs})

    def save_parameters(self, logic, data):
        data.update(self.params)

    def create_with_parameters(self, logic, data):
        return self.with_params(_params_from(data))


class FunctionCondition(Condition):
    """A condition from a predicate over the event arguments."""

    def __init__(self, pred: Callable[[Any], bool], name: str | None = None):
        self.pred = pred
        self.name = name

    def check(self, ctx: "InteractionContext") -> bool:
        return self.pred(ctx.arguments)


class FunctionAction(Action):
    """An action from a function over the event arguments."""

    def __init__(self, func: Callable[[Any], Any], name: str | None = None):
        self.func = func
        self.name = name

    def execute(self, ctx: "InteractionContext") -> Any:
        return self.func(ctx.arguments)


def condition(pred: Callable[[Any], bool]) -> Condition:
    """Create an unserializable condition from a predicate."""
    return FunctionCondition(pred)


def action(func: Callable[[Any], Any]) -> Action:
    """Create an unserializable action from a function."""
    return FunctionAction(func)


def simple_condition(name: str, pred: Callable[[Any], bool]) -> Condition:
    """Create a named, serializable condition without parameters."""
    return FunctionCondition(pred, name)


def simple_action(name: str, func: Callable[[Any], Any]) -> Action:
    """Create a named, serializable action without parameters."""
    return FunctionAction(func, name)


def param_condition(name: str, func: Callable[[Any, dict[str, Any]], bool]) -> ParamCondition:
    """Create a condition template; bind parameters with ``with_params``."""
    return ParamCondition(name, func)


def param_action(name: str, func: Callable[[Any, dict[str, Any]], Any]) -> ParamAction:
    """Create an action template; bind parameters with ``with_params``."""
    return ParamAction(name, func)
