"""Hooks adjusting generated template properties.

Customizations run after the default generation of a property, sorted by
``order`` (registration order breaks ties). Each one may replace or mutate
the property, or drop it by returning ``SKIP``. An ``exclusive``
customization ends the chain for that property. When several customizations
touch the same attribute, the last one to run wins.

Plain callables ``fn(prop, member)`` (sync or async) are accepted wherever a
customization is expected.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from schemas.forms import PropertyBase
from services.member_metadata import MemberInfo
from utils.async_utils import maybe_await

if TYPE_CHECKING:
    from services.form_template_factory import FormTemplateFactory


class _SkipProperty:
    def __repr__(self):
        return "SKIP"


SKIP = _SkipProperty()


class PropertyTemplateCustomization(ABC):
    order: int = 1
    exclusive: bool = False
    # Restricts the customization to members of these DTO types (and subclasses)
    dto_types: tuple[type, ...] = ()

    def applies_to_type(self, dto_type: type) -> bool:
        return not self.dto_types or (isinstance(dto_type, type) and issubclass(dto_type, self.dto_types))

    def applies_to(self, dto_type: type, member: MemberInfo, prop: PropertyBase) -> bool:
        return self.applies_to_type(dto_type)

    async def include(self, dto_type: type, member: MemberInfo) -> bool:
        """Return False to leave the member out of the template altogether.

        Only asked for members of types the customization applies to.
        """
        return True

    @abstractmethod
    async def apply(
        self,
        prop: PropertyBase,
        member: MemberInfo,
        factory: "FormTemplateFactory"
    ) -> PropertyBase | _SkipProperty | None:
        """Return a replacement property, ``SKIP``, or ``None`` to keep ``prop``."""
        pass


class FunctionPropertyTemplateCustomization(PropertyTemplateCustomization):
    def __init__(
        self,
        function: Callable[[PropertyBase, MemberInfo], Any],
        order: int = 1,
        exclusive: bool = False,
        dto_types: tuple[type, ...] = ()
    ):
        self.function = function
        self.order = order
        self.exclusive = exclusive
        self.dto_types = dto_types

    async def apply(self, prop, member, factory):
        return await maybe_await(self.function(prop, member))

    def __repr__(self):
        return f"{type(self).__name__}({getattr(self.function, '__name__', self.function)!r})"


def as_property_template_customization(hook: Any) -> PropertyTemplateCustomization:
    if isinstance(hook, PropertyTemplateCustomization):
        return hook
    if callable(hook):
        return FunctionPropertyTemplateCustomization(hook)
    raise TypeError(f"{hook!r} is not a property template customization")
