"""
The trigger, condition and action interaction engine.
"""

from cordkit.interactions.components import (
    Action,
    ComponentType,
    Condition,
    InteractionComponent,
    InteractionSerializationLogic,
    InvertedCondition,
    OrConditionList,
    ParamAction,
    ParamCondition,
    Trigger,
    TriggerList,
    action,
    condition,
    param_action,
    param_condition,
    simple_action,
    simple_condition,
)
from cordkit.interactions.events import EventTrigger, event_trigger
from cordkit.interactions.interaction import (
    ONCE,
    PERSISTENT,
    Interaction,
    InteractionContext,
    InteractionLifetime,
    UsesLifetime,
)
from cordkit.interactions.library import (
    STANDARD_COMPONENTS,
    Actions,
    Conditions,
    ConfirmResult,
    EventArgs,
    Triggers,
    confirm_message,
    register_standard_components,
)
from cordkit.interactions.manager import UNSERIALIZABLE_MARKER, InteractionManager
from cordkit.interactions.schema import InteractionStore, PersistedInteraction

__all__ = [
    "ComponentType",
    "InteractionComponent",
    "InteractionSerializationLogic",
    "Trigger",
    "TriggerList",
    "Condition",
    "OrConditionList",
    "InvertedCondition",
    "Action",
    "ParamCondition",
    "ParamAction",
    "condition",
    "action",
    "simple_condition",
    "simple_action",
    "param_condition",
    "param_action",
    "EventTrigger",
    "event_trigger",
    "Interaction",
    "InteractionContext",
    "InteractionLifetime",
    "PERSISTENT",
    "ONCE",
    "UsesLifetime",
    "InteractionManager",
    "UNSERIALIZABLE_MARKER",
    "PersistedInteraction",
    "InteractionStore",
    "EventArgs",
    "Triggers",
    "Conditions",
    "Actions",
    "STANDARD_COMPONENTS",
    "register_standard_components",
    "ConfirmResult",
    "confirm_message",
]
