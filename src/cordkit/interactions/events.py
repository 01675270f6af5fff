"""
Triggers fired by events of the event bus.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from cordkit.events import platform_event
from cordkit.interactions.components import Trigger

if TYPE_CHECKING:
    from cordkit.interactions.interaction import Interaction

logger = logging.getLogger(__name__)


class EventTrigger(Trigger):
    """
    A trigger firing on one bus event.

    The event arguments are mapped into the arguments the interactions
    receive. InteractionManager.connect subscribes the bus once per event name
    and hands every event to the triggers of that name.

    Params:
        name: The component name
        event: The bus event name
        mapper: Maps the event arguments to the interaction arguments
    """

    def __init__(self, name: str, event: str, mapper: Callable[..., Any] | None = None):
        self.name = name
        self.event = event
        self.mapper = mapper
        self.interactions: list["Interaction"] = []

    def register(self, interaction: "Interaction") -> None:
        if interaction not in self.interactions:
            self.interactions.append(interaction)

    def unregister(self, interaction: "Interaction") -> None:
        if interaction in self.interactions:
            self.interactions.remove(interaction)

    async def fire(self, *args: Any) -> None:
        """Fire every registered interaction with the mapped event arguments."""
        mapped = self.mapper(*args) if self.mapper is not None else args
        logger.debug("%s fired for %d interactions", self.key, len(self.interactions))
        # Interactions may destroy themselves while firing
        for interaction in list(self.interactions):
            await interaction.trigger(mapped)


def event_trigger(
    event: str, mapper: Callable[..., Any] | None = None, name: str | None = None
) -> EventTrigger:
    """
    Create a trigger for a platform client event.

    Params:
        event: The client event name, such as ``member_join``
        mapper: Maps the event arguments to the interaction arguments
        name: The component name, ``discord.<event>`` by default
    """
    return EventTrigger(name or f"discord.{event}", platform_event(event), mapper)
