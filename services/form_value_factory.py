"""Fills templates with the values of DTO instances."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from core.constants import DEFAULT_FORM_TEMPLATE_NAME
from core.exceptions import FormConfigurationError
from core.logging_config import get_logger
from schemas.forms import FormTemplate, PropertyBase, PropertyType
from services.member_metadata import read_member_value, type_name
from services.options_builder import selected_values
from services.property_value_customization import PropertyValueCustomization, as_property_value_customization
from utils.async_utils import maybe_await

logger = get_logger(__name__)


class FormValueFactory:
    """Overlays a template with the members of a value.

    The template passed in is never modified; every call works on a fresh
    deep copy, so filling the same template twice gives equal results.
    Members missing from the value, or holding something the property cannot
    represent, leave the property without a value.
    """

    def __init__(self, value_customizations: Iterable[PropertyValueCustomization | Any] | None = None):
        self._value_customizations = sorted(
            (as_property_value_customization(c) for c in value_customizations or []),
            key=lambda c: c.order,
        )

    async def fill_with(self, template: FormTemplate, value: Any) -> FormTemplate:
        filled = template.model_copy(deep=True)
        if value is None:
            return filled
        await self._fill_properties(filled, value)
        return filled

    async def _fill_properties(self, template: FormTemplate, dto_value: Any):
        for prop in template.properties:
            await asyncio.sleep(0)
            found, member_value = read_member_value(dto_value, prop.name)
            if not found:
                logger.debug_ctx(
                    "Member missing on value, property left empty",
                    property=prop.name,
                    value_type=type_name(type(dto_value)),
                )
                continue

            # Properties without a nested template hold the raw value
            if prop.type is PropertyType.OBJECT and prop.templates:
                await self._fill_object(prop, member_value)
            elif prop.type is PropertyType.COLLECTION and prop.templates:
                await self._fill_collection(prop, member_value)
            else:
                await self._fill_leaf(prop, member_value, dto_value)

    async def _fill_object(self, prop: PropertyBase, member_value: Any):
        nested = prop.templates.get(DEFAULT_FORM_TEMPLATE_NAME)
        if nested is None:
            logger.debug_ctx("Object property without default template left empty", property=prop.name)
            return
        prop.value = None
        if member_value is None:
            return
        prop.templates = {DEFAULT_FORM_TEMPLATE_NAME: await self.fill_with(nested, member_value)}

    async def _fill_collection(self, prop: PropertyBase, member_value: Any):
        element_template = prop.templates.get(DEFAULT_FORM_TEMPLATE_NAME)
        if element_template is None:
            return
        prop.value = None
        if member_value is None:
            return
        if isinstance(member_value, Mapping):
            items = [{"key": key, "value": item} for key, item in member_value.items()]
        elif isinstance(member_value, Iterable) and not isinstance(member_value, (str, bytes, bytearray)):
            items = list(member_value)
        else:
            logger.debug_ctx(
                "Collection property holds a non iterable value, left empty",
                property=prop.name,
                value_type=type_name(type(member_value)),
            )
            return

        templates = {DEFAULT_FORM_TEMPLATE_NAME: element_template}
        for index, item in enumerate(items):
            item_template = await self.fill_with(element_template, item)
            item_template.title = str(index)
            templates[str(index)] = item_template
        prop.templates = templates

    async def _fill_leaf(self, prop: PropertyBase, member_value: Any, dto_value: Any):
        value = member_value
        for customization in self._value_customizations:
            if not customization.applies_to(prop, dto_value):
                continue
            try:
                value = await maybe_await(customization.customize(prop, value, dto_value))
            except Exception as exc:
                logger.error_ctx("Property value customization failed", hook=repr(customization), property=prop.name)
                raise FormConfigurationError(
                    f"{customization!r} failed for property '{prop.name}': {exc}",
                    dto_type=type(dto_value),
                    property_name=prop.name,
                    hook=customization,
                ) from exc
            if customization.exclusive:
                break

        prop.value = value
        options = getattr(prop, "options", None)
        if options is not None and value is not None:
            options.selected_values = selected_values(value)
