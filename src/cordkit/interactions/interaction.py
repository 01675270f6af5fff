"""
Interactions: one trigger, ordered conditions and actions, and a lifetime.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cordkit.exceptions.core import InteractionError
from cordkit.interactions.components import Action, Condition, Trigger

if TYPE_CHECKING:
    from cordkit.interactions.manager import InteractionManager

logger = logging.getLogger(__name__)


@dataclass
class InteractionContext:
    """A firing of an interaction with the event arguments it fired with."""

    interaction: "Interaction"
    arguments: Any


class InteractionLifetime(ABC):
    """Decides after each firing whether an interaction stays registered."""

    @abstractmethod
    def should_persist(self, ctx: InteractionContext) -> bool:
        pass


class PersistentLifetime(InteractionLifetime):
    def should_persist(self, ctx: InteractionContext) -> bool:
        return True


class OnceLifetime(InteractionLifetime):
    def should_persist(self, ctx: InteractionContext) -> bool:
        return False


class UsesLifetime(InteractionLifetime):
    """Persist until the interaction has run its actions a number of times."""

    def __init__(self, uses: int):
        self.remaining = uses

    def should_persist(self, ctx: InteractionContext) -> bool:
        self.remaining -= 1
        return self.remaining > 0


PERSISTENT = PersistentLifetime()
ONCE = OnceLifetime()


class Interaction:
    """
    A registered rule: when the trigger fires and every condition passes, run
    the actions, then ask the lifetime whether to stay registered.

    Interactions are created through ``InteractionManager.builder()``, which
    registers them immediately; ``create()`` then registers the trigger.
    """

    def __init__(self, manager: "InteractionManager", id: int):
        self.manager = manager
        self.id = id
        self.name: str | None = None
        self.persistent = False
        self.lifetime: InteractionLifetime | None = None
        self.trigger_component: Trigger | None = None
        self.conditions: list[Condition] = []
        self.actions: list[Action] = []
        self.meta: dict[str, Any] = {}
        self.enabled = False
        self.destroyed = False

    async def trigger(self, args: Any) -> bool:
        """
        Fire this interaction.

        Conditions are checked in order and stop at the first failing one.
        The lifetime is settled before the first action runs; an interaction
        that does not persist is already destroyed while its actions run.
        Actions run in order; an awaitable returned by an action is awaited
        before the next action runs. Errors raised by actions propagate.

        Params:
            args: The event arguments, or an InteractionContext

        Returns:
            Whether the actions ran
        """
        if self.destroyed:
            return False
        ctx = args if isinstance(args, InteractionContext) else InteractionContext(self, args)

        for cond in self.conditions:
            if not cond.check(ctx):
                return False

        if self.lifetime is None or not self.lifetime.should_persist(ctx):
            self.destroy()

        for act in self.actions:
            out = act.execute(ctx)
            if inspect.isawaitable(out):
                await out
        return True

    def named(self, name: str) -> "Interaction":
        self.manager.rename(self, name)
        return self

    def persist(self, name: str | None = None) -> "Interaction":
        """Save this interaction with the persistent data and never expire it."""
        if name is not None:
            self.named(name)
        self.persistent = True
        self.lifetime = PERSISTENT
        return self

    def once(self) -> "Interaction":
        self.lifetime = ONCE
        return self

    def uses(self, count: int) -> "Interaction":
        self.lifetime = UsesLifetime(count)
        return self

    def with_lifetime(self, lifetime: InteractionLifetime) -> "Interaction":
        self.lifetime = lifetime
        return self

    def when(self, trigger: Trigger) -> "Interaction":
        if trigger is None:
            raise InteractionError("Trigger can not be None")
        self.trigger_component = trigger
        return self

    def only_if(self, cond: Condition) -> "Interaction":
        if cond is None:
            raise InteractionError("Condition can not be None")
        self.conditions.append(cond)
        return self

    def then(self, act: Action) -> "Interaction":
        if act is None:
            raise InteractionError("Action can not be None")
        self.actions.append(act)
        return self

    def create(self) -> "Interaction":
        """
        Finish building and start listening to the trigger.

        Raises:
            InteractionError: If no trigger was set
        """
        if self.trigger_component is None:
            raise InteractionError(f"{self} has no trigger")
        return self.enable()

    def enable(self) -> "Interaction":
        if not self.enabled and not self.destroyed:
            self.trigger_component.register(self)
            self.enabled = True
        return self

    def disable(self) -> "Interaction":
        if self.enabled:
            self.trigger_component.unregister(self)
            self.enabled = False
        return self

    def destroy(self) -> "Interaction":
        """Unregister the trigger and remove this interaction from its manager."""
        if self.destroyed:
            return self
        self.disable()
        self.destroyed = True
        self.manager.unregister(self)
        logger.debug("Destroyed %s", self)
        return self

    def __repr__(self) -> str:
        if self.name:
            return f"Interaction(id: {self.id}, name: {self.name})"
        return f"Interaction(id: {self.id})"
