"""Hooks adjusting the values put into filled templates.

They run per leaf property, after the member value was read, and return the
value to store. Handy for formatting or redacting. Plain callables
``fn(prop, value)`` (sync or async) are accepted as well.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from schemas.forms import PropertyBase
from utils.async_utils import maybe_await


class PropertyValueCustomization(ABC):
    order: int = 1
    exclusive: bool = False

    def applies_to(self, prop: PropertyBase, dto_value: Any) -> bool:
        return True

    @abstractmethod
    async def customize(self, prop: PropertyBase, value: Any, dto_value: Any) -> Any:
        pass


class FunctionPropertyValueCustomization(PropertyValueCustomization):
    def __init__(self, function: Callable[[PropertyBase, Any], Any], order: int = 1, exclusive: bool = False):
        self.function = function
        self.order = order
        self.exclusive = exclusive

    async def customize(self, prop, value, dto_value):
        return await maybe_await(self.function(prop, value))

    def __repr__(self):
        return f"{type(self).__name__}({getattr(self.function, '__name__', self.function)!r})"


def as_property_value_customization(hook: Any) -> PropertyValueCustomization:
    if isinstance(hook, PropertyValueCustomization):
        return hook
    if callable(hook):
        return FunctionPropertyValueCustomization(hook)
    raise TypeError(f"{hook!r} is not a property value customization")
