"""
Pydantic models of the persisted interaction file.

.. code-block:: json

    {"interactions": [
        {"id": 3, "name": "welcome",
         "trigger": "trigger::discord.member_join",
         "conditions": [{"key": "condition::inverted", "base": "condition::userIsBot"}],
         "actions": [{"key": "action::giveRole", "id": 1234}]}
    ]}
"""

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field


def _check_ref(value: str | dict[str, Any]) -> str | dict[str, Any]:
    if isinstance(value, dict) and not isinstance(value.get("key"), str):
        raise ValueError("parameterized component reference needs a string 'key'")
    return value


ComponentRef = Annotated[str | dict[str, Any], AfterValidator(_check_ref)]


class PersistedInteraction(BaseModel):
    """One saved interaction."""

    id: int
    name: str | None = None
    trigger: ComponentRef
    conditions: list[ComponentRef] = Field(default_factory=list)
    actions: list[ComponentRef] = Field(default_factory=list)


class InteractionStore(BaseModel):
    """
    The saved document. Entries stay raw so each one is validated on its own
    and a broken entry does not reject the whole file.
    """

    interactions: list[Any] = Field(default_factory=list)
