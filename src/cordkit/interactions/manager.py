"""
The interaction registry and the persistence of interactions.
"""

import functools
import logging
from typing import TYPE_CHECKING, Any

from cordkit.exceptions.core import (
    DuplicateInteractionError,
    InteractionError,
    UnknownComponentError,
)
from cordkit.interactions.components import (
    InteractionComponent,
    InteractionSerializationLogic,
    InvertedCondition,
    OrConditionList,
    TriggerList,
)
from cordkit.interactions.events import EventTrigger
from cordkit.interactions.interaction import PERSISTENT, Interaction
from cordkit.interactions.schema import InteractionStore, PersistedInteraction

if TYPE_CHECKING:
    from cordkit.events import EventBus
    from cordkit.storage import DataIO

logger = logging.getLogger(__name__)

UNSERIALIZABLE_MARKER = "ERRUNSERIALIZABLE"


class InteractionManager(InteractionSerializationLogic):
    """
    Registry of interactions by id and by name, and of the base components
    persisted interactions are rebuilt from.

    Params:
        data_io: Persistence for persistent interactions, optional
    """

    def __init__(self, data_io: "DataIO | None" = None):
        self.data_io = data_io
        self.base_components: dict[str, InteractionComponent] = {}
        self.interactions: dict[int, Interaction] = {}
        self.interactions_by_name: dict[str, Interaction] = {}
        self._next_id = 1

        self.event_bus: "EventBus | None" = None
        self._triggers_by_event: dict[str, list[EventTrigger]] = {}

        for component in (TriggerList(), OrConditionList(), InvertedCondition()):
            self.register_base_component(component)

    def register_base_component(self, component: InteractionComponent) -> InteractionComponent:
        """
        Register a named component as a deserialization target.

        Event triggers are connected to the event bus if one is connected.
        """
        if component.name is None:
            raise InteractionError(f"Can not register unnamed component {component!r}")
        self.base_components[component.key] = component
        if isinstance(component, EventTrigger) and self.event_bus is not None:
            self._attach(component)
        return component

    def get_base_component(self, key: str) -> InteractionComponent:
        component = self.base_components.get(key)
        if component is None:
            raise UnknownComponentError(key)
        return component

    def connect(self, bus: "EventBus") -> None:
        """Connect the registered event triggers to the bus."""
        self.event_bus = bus
        for component in self.base_components.values():
            if isinstance(component, EventTrigger):
                self._attach(component)

    def _attach(self, trigger: EventTrigger) -> None:
        triggers = self._triggers_by_event.get(trigger.event)
        if triggers is None:
            triggers = self._triggers_by_event[trigger.event] = []
            self.event_bus.subscribe(
                trigger.event, functools.partial(self._fire_event, trigger.event)
            )
        if trigger not in triggers:
            triggers.append(trigger)

    async def _fire_event(self, event: str, *args: Any) -> None:
        for trigger in list(self._triggers_by_event.get(event, [])):
            await trigger.fire(*args)

    def new_id(self) -> int:
        id = self._next_id
        self._next_id += 1
        return id

    def builder(self) -> Interaction:
        """Allocate and register a new interaction to build."""
        interaction = Interaction(self, self.new_id())
        self.register(interaction)
        return interaction

    def register(self, interaction: Interaction) -> None:
        """
        Register an interaction by id and by name.

        Registering an interaction under an id that is already taken replaces
        the old entry.

        Raises:
            DuplicateInteractionError: If another interaction has the same name
        """
        if interaction.name is not None:
            self._check_name(interaction, interaction.name)
        old = self.interactions.get(interaction.id)
        if old is not None and old is not interaction and old.name is not None:
            self.interactions_by_name.pop(old.name, None)

        interaction.manager = self
        self.interactions[interaction.id] = interaction
        if interaction.name is not None:
            self.interactions_by_name[interaction.name] = interaction
        self._next_id = max(self._next_id, interaction.id + 1)

    def _check_name(self, interaction: Interaction, name: str) -> None:
        existing = self.interactions_by_name.get(name)
        if existing is not None and existing.id != interaction.id:
            raise DuplicateInteractionError(name, existing.id, interaction.id)

    def rename(self, interaction: Interaction, name: str) -> None:
        self._check_name(interaction, name)
        if interaction.name is not None and self.interactions_by_name.get(interaction.name) is interaction:
            del self.interactions_by_name[interaction.name]
        interaction.name = name
        if self.interactions.get(interaction.id) is interaction:
            self.interactions_by_name[name] = interaction

    def unregister(self, interaction: Interaction) -> None:
        if self.interactions.get(interaction.id) is interaction:
            del self.interactions[interaction.id]
        if interaction.name is not None and self.interactions_by_name.get(interaction.name) is interaction:
            del self.interactions_by_name[interaction.name]

    def get(self, key: int | str) -> Interaction | None:
        """Get an interaction by id or name."""
        if isinstance(key, int):
            return self.interactions.get(key)
        return self.interactions_by_name.get(key)

    def remove(self, key: int | str) -> bool:
        """Destroy an interaction by id or name; returns whether one was found."""
        interaction = self.get(key)
        if interaction is None:
            return False
        interaction.destroy()
        return True

    def save_component(self, component: InteractionComponent) -> Any:
        if not component.is_serializable:
            logger.warning(
                "Component %r can not be serialized, saving it as %s",
                component,
                UNSERIALIZABLE_MARKER,
            )
            return UNSERIALIZABLE_MARKER
        if not component.is_parameterized:
            return component.key

        data: dict[str, Any] = {"key": component.key}
        component.save_parameters(self, data)
        return data

    def load_component(self, data: Any) -> InteractionComponent:
        """
        Rebuild a component from its saved form.

        Raises:
            UnknownComponentError: If no base component has the saved key
        """
        if isinstance(data, str):
            return self.get_base_component(data)
        base = self.get_base_component(data.get("key"))
        if not base.is_parameterized:
            return base
        return base.create_with_parameters(self, data)

    def serialize_interaction(self, interaction: Interaction) -> dict[str, Any]:
        return {
            "name": interaction.name,
            "id": interaction.id,
            "trigger": self.save_component(interaction.trigger_component),
            "conditions": [self.save_component(c) for c in interaction.conditions],
            "actions": [self.save_component(a) for a in interaction.actions],
        }

    def deserialize_interaction(self, data: dict[str, Any]) -> Interaction:
        """
        Rebuild a persistent interaction, not yet registered.

        Raises:
            ValidationError: If the entry does not match the saved schema
            UnknownComponentError: If a component key is unknown
        """
        entry = PersistedInteraction.model_validate(data)
        interaction = Interaction(self, entry.id)
        interaction.name = entry.name
        interaction.persistent = True
        interaction.lifetime = PERSISTENT
        interaction.trigger_component = self.load_component(entry.trigger)
        interaction.conditions = [self.load_component(c) for c in entry.conditions]
        interaction.actions = [self.load_component(a) for a in entry.actions]
        return interaction

    def save_all_persistent_data(self) -> None:
        saved = [
            self.serialize_interaction(i)
            for i in self.interactions.values()
            if i.persistent
        ]
        self.data_io.save({"interactions": saved})

    def load_all_persistent_data(self) -> int:
        """
        Load, register and enable all saved interactions.

        Every entry is rebuilt on its own; an entry that fails to validate or
        rebuild is skipped with a warning.

        Returns:
            The number of loaded interactions
        """
        store = InteractionStore.model_validate(self.data_io.load() or {})
        loaded = 0
        for data in store.interactions:
            try:
                interaction = self.deserialize_interaction(data)
                if interaction.id in self.interactions:
                    raise InteractionError(f"Interaction id {interaction.id} is already registered")
                self.register(interaction)
            except Exception as e:
                logger.warning("Skipping persisted interaction %s: %s", _entry_label(data), e)
                continue
            interaction.create()
            loaded += 1
        logger.info("Loaded %d persistent interactions", loaded)
        return loaded


def _entry_label(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("name") or data.get("id"))
    return repr(data)
