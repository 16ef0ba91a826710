"""Options for enum members and foreign keys."""

from collections.abc import Iterable, Mapping, Sequence
from enum import Enum, Flag
from typing import Any

from annotated_types import MaxLen, MinLen
from pydantic.alias_generators import to_camel

from core.exceptions import FormConfigurationError
from core.logging_config import get_logger
from core.settings import settings
from schemas.form_annotations import DISPLAY_COLUMN_ATTRIBUTE, ForeignKey, Key
from schemas.forms import Options, OptionsItem, PropertyType
from services.foreign_key_link_factory import ForeignKeyLinkFactory
from services.member_metadata import (
    MemberInfo,
    describe_members,
    find_member,
    split_annotation,
    type_name,
    wire_name,
)
from services.property_type_classifier import (
    classify,
    element_type,
    is_collection,
    is_enum,
    is_literal,
    literal_values,
)
from utils.async_utils import maybe_await

logger = get_logger(__name__)

FOREIGN_KEY_SUFFIX = "id"


def foreign_key_target_name(member: MemberInfo) -> str | None:
    """Name of the member a key member refers to.

    An explicit ``ForeignKey`` marker wins, otherwise ``customer_id`` and
    ``customerId`` both refer to ``customer``.
    """
    marker = member.find(ForeignKey)
    if marker is not None:
        return marker.name
    name = member.name
    if len(name) > len(FOREIGN_KEY_SUFFIX) and name.lower().endswith(FOREIGN_KEY_SUFFIX):
        return name[:-len(FOREIGN_KEY_SUFFIX)].rstrip("_") or None
    return None


def selected_values(value: Any) -> list[Any]:
    """Values to mark as selected for a property holding ``value``."""
    if value is None:
        return []
    if isinstance(value, Flag):
        return [
            member for member in type(value)
            if member.value and bin(member.value).count("1") == 1 and member in value
        ]
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _length_bounds(member: MemberInfo) -> tuple[int | None, int | None]:
    min_length = max_length = None
    for marker in member.metadata:
        if isinstance(marker, MinLen):
            min_length = marker.min_length
        elif isinstance(marker, MaxLen):
            max_length = marker.max_length
    return min_length, max_length


class OptionsBuilder:
    def __init__(
        self,
        foreign_key_link_factories: Sequence[ForeignKeyLinkFactory] | None = None,
        camel_case_prompts: bool | None = None,
        camel_case_names: bool | None = None
    ):
        self._foreign_key_link_factories = list(foreign_key_link_factories or [])
        self._camel_case_prompts = (
            settings.HAL_FORMS_CAMEL_CASE_OPTION_PROMPTS if camel_case_prompts is None else camel_case_prompts
        )
        self._camel_case_names = (
            settings.HAL_FORMS_CAMEL_CASE_NAMES if camel_case_names is None else camel_case_names
        )

    async def build_options(
        self,
        member: MemberInfo,
        members: Sequence[MemberInfo] = (),
        required: bool | None = None
    ) -> Options | None:
        """Options for ``member`` or ``None`` when it has no value domain.

        Enums take precedence over foreign keys: an enum member that also
        matches the foreign key naming convention gets inline options.
        """
        if required is None:
            required = not member.is_optional

        if is_enum(member.annotation):
            return self.build_enum_options(member.value_type, required)

        if is_collection(member.annotation) and is_enum(element_type(member.annotation)):
            min_items, max_items = _length_bounds(member)
            return self.build_enum_options(
                split_annotation(element_type(member.annotation))[0],
                required,
                multi_select=True,
                min_items=min_items,
                max_items=max_items,
            )

        if is_literal(member.annotation):
            return self.build_literal_options(literal_values(member.annotation), required)

        if is_collection(member.annotation) and is_literal(element_type(member.annotation)):
            min_items, max_items = _length_bounds(member)
            return self.build_literal_options(
                literal_values(element_type(member.annotation)),
                required,
                multi_select=True,
                min_items=min_items,
                max_items=max_items,
            )

        return await self.build_foreign_key_options(member, members, required)

    def build_literal_options(
        self,
        values: Sequence[Any],
        required: bool,
        multi_select: bool = False,
        min_items: int | None = None,
        max_items: int | None = None
    ) -> Options:
        inline = [OptionsItem(prompt=str(value), value=value) for value in values]
        if multi_select:
            return Options(inline=inline, min_items=min_items, max_items=max_items)
        return Options(inline=inline, min_items=1 if required else 0, max_items=1)

    def build_enum_options(
        self,
        enum_type: type[Enum],
        required: bool,
        multi_select: bool = False,
        min_items: int | None = None,
        max_items: int | None = None
    ) -> Options:
        inline = [OptionsItem(prompt=self._prompt_for(item), value=item) for item in enum_type]
        if multi_select:
            return Options(inline=inline, min_items=min_items, max_items=max_items)
        return Options(
            inline=inline,
            min_items=1 if required else 0,
            max_items=None if issubclass(enum_type, Flag) else 1,
        )

    async def build_foreign_key_options(
        self,
        member: MemberInfo,
        members: Sequence[MemberInfo],
        required: bool
    ) -> Options | None:
        target_name = foreign_key_target_name(member)
        if target_name is None:
            return None
        referenced = find_member([m for m in members if m is not member], target_name)
        if referenced is None:
            return None

        if classify(referenced.annotation) is PropertyType.COLLECTION:
            list_type = split_annotation(element_type(referenced.annotation))[0]
        else:
            list_type = referenced.value_type

        factory = await self._find_link_factory(list_type)
        if factory is None:
            logger.debug_ctx(
                "No foreign key link factory, rendering raw value",
                member=member.name,
                list_type=type_name(list_type),
            )
            return None

        link = await maybe_await(factory.create_link(list_type))
        if link is None:
            return None

        multi_select = is_collection(member.annotation)
        min_items, max_items = _length_bounds(member) if multi_select else (None, None)
        return Options(
            link=link,
            value_field=self._primary_key_name(list_type),
            prompt_field=self._display_column_name(list_type),
            min_items=min_items if min_items is not None else (1 if required else 0),
            max_items=max_items if multi_select else 1,
        )

    async def _find_link_factory(self, list_type: type) -> ForeignKeyLinkFactory | None:
        for factory in self._foreign_key_link_factories:
            if await maybe_await(factory.can_create_link(list_type)):
                return factory
        return None

    def _prompt_for(self, item: Enum) -> str:
        name = item.name or str(item.value)
        return to_camel(name.lower()) if self._camel_case_prompts else name

    def _primary_key_name(self, list_type: type) -> str:
        members = describe_members(list_type)
        key = next((m for m in members if m.has(Key)), None) or find_member(members, "id")
        if key is None:
            raise FormConfigurationError(
                f"Cannot determine the primary key of {type_name(list_type)}; mark a member with Key()",
                dto_type=list_type,
            )
        return wire_name(key, self._camel_case_names)

    def _display_column_name(self, list_type: type) -> str:
        members = describe_members(list_type)
        configured = getattr(list_type, DISPLAY_COLUMN_ATTRIBUTE, None)
        if configured is not None:
            member = find_member(members, configured)
            if member is None:
                raise FormConfigurationError(
                    f"Display column '{configured}' is not a member of {type_name(list_type)}",
                    dto_type=list_type,
                )
            return wire_name(member, self._camel_case_names)

        own = [m for m in members if m.declaring_type is list_type]
        for candidates in (own, members):
            if len(candidates) == 1:
                return wire_name(candidates[0], self._camel_case_names)
            text_members = [m for m in candidates if m.value_type is str]
            if len(text_members) == 1:
                return wire_name(text_members[0], self._camel_case_names)

        raise FormConfigurationError(
            f"Cannot determine the display column of {type_name(list_type)}; use @display_column",
            dto_type=list_type,
        )
