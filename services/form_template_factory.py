"""Generation of schema-only HAL-Forms templates from DTO types."""

import asyncio
from collections.abc import Iterable, Sequence
from contextvars import ContextVar
from decimal import Decimal
from typing import Any

from core.constants import DEFAULT_FORM_TEMPLATE_NAME
from core.exceptions import FormConfigurationError
from core.logging_config import get_logger
from core.settings import settings
from schemas.forms import FormTemplate, PropertyBase, PropertyType, create_property, supports
from services.member_metadata import MemberInfo, describe_members, split_annotation, type_name, wire_name
from services.forms_resource_customization import FormTemplateCustomization, as_form_template_customization
from services.options_builder import OptionsBuilder
from services.property_annotations import apply_member_annotations, display_order, is_excluded
from services.property_template_customization import (
    SKIP,
    PropertyTemplateCustomization,
    as_property_template_customization,
)
from services.property_type_classifier import classify, element_type, is_enum, is_integer, is_mapping
from services.template_cache import TemplateCache
from utils.async_utils import maybe_await

logger = get_logger(__name__)

REQUIRED_INTEGER_REGEX = r"^(\+|-)?\d+$"
OPTIONAL_INTEGER_REGEX = r"^(\+|-)?\d*$"
DECIMAL_REGEX = r"^[-+]?\d*\.?\d*$"
DECIMAL_STEP = 0.01

# Types whose templates are being built by the current task, outermost first
_building_types: ContextVar[tuple[Any, ...]] = ContextVar("hal_forms_building_types", default=())


def has_nested_members(value_type: Any) -> bool:
    if value_type is Any or value_type is object or not isinstance(value_type, type):
        return False
    return bool(describe_members(value_type))


class FormTemplateFactory:
    """Builds templates from DTO types.

    Top-level templates are memoized in the template cache keyed by
    ``(dto_type, method, title, content_type)``; callers always receive a
    copy. Nested templates are built inside the top-level build and are cut
    off (no nested template) when a type re-enters itself or the nesting gets
    deeper than ``max_depth``.
    """

    def __init__(
        self,
        property_customizations: Iterable[PropertyTemplateCustomization | Any] | None = None,
        template_customizations: Iterable[FormTemplateCustomization | Any] | None = None,
        options_builder: OptionsBuilder | None = None,
        cache: TemplateCache | None = None,
        max_depth: int | None = None,
        camel_case_names: bool | None = None
    ):
        # sorted() is stable: equal orders keep registration order
        self._property_customizations = sorted(
            (as_property_template_customization(c) for c in property_customizations or []),
            key=lambda c: c.order,
        )
        self._template_customizations = [as_form_template_customization(c) for c in template_customizations or []]
        self._camel_case_names = settings.HAL_FORMS_CAMEL_CASE_NAMES if camel_case_names is None else camel_case_names
        self._options_builder = options_builder or OptionsBuilder(camel_case_names=self._camel_case_names)
        self._cache = cache if cache is not None else TemplateCache()
        self._max_depth = settings.HAL_FORMS_MAX_TEMPLATE_DEPTH if max_depth is None else max_depth

    @property
    def cache(self) -> TemplateCache:
        return self._cache

    async def create_template_for(
        self,
        dto_type: type,
        method: str | None = None,
        title: str | None = None,
        content_type: str | None = None
    ) -> FormTemplate:
        content_type = content_type or settings.HAL_FORMS_DEFAULT_CONTENT_TYPE

        if _building_types.get():
            # Nested builds depend on the enclosing type, keep them out of the cache
            return await self._build_template(dto_type, method, title, content_type)

        key = (dto_type, method, title, content_type)
        template = await self._cache.get_or_create(
            key, lambda: self._build_template(dto_type, method, title, content_type)
        )
        return template.model_copy(deep=True)

    async def create_templates_with_default_entry(
        self,
        dto_type: type,
        method: str | None = None,
        title: str | None = None,
        content_type: str | None = None
    ) -> dict[str, FormTemplate] | None:
        """``{"default": template}`` for ``dto_type``, ``None`` when nesting is cut off."""
        stack = _building_types.get()
        if dto_type in stack:
            logger.debug_ctx("Type re-enters itself, nested template omitted", dto_type=type_name(dto_type))
            return None
        if len(stack) >= self._max_depth:
            logger.debug_ctx(
                "Maximum template depth reached, nested template omitted",
                dto_type=type_name(dto_type),
                max_depth=self._max_depth,
            )
            return None

        template = await self.create_template_for(dto_type, method, title, content_type)
        return {DEFAULT_FORM_TEMPLATE_NAME: template}

    async def _build_template(
        self,
        dto_type: type,
        method: str | None,
        title: str | None,
        content_type: str
    ) -> FormTemplate:
        top_level = not _building_types.get()
        token = _building_types.set(_building_types.get() + (dto_type,))
        try:
            members = [member for member in describe_members(dto_type) if not is_excluded(member)]
            members.sort(key=display_order)

            properties = []
            for member in members:
                # Cancellation checkpoint between members
                await asyncio.sleep(0)
                prop = await self._create_property(dto_type, member, members)
                if prop is not None:
                    properties.append(prop)

            template = FormTemplate(
                content_type=content_type,
                method=method,
                title=title,
                properties=properties,
            )
            # Template customizations shape the whole form, nested templates are left alone
            if top_level:
                template = await self._apply_template_customizations(dto_type, template)
            logger.debug_ctx(
                "Built form template",
                dto_type=type_name(dto_type),
                properties=len(template.properties),
            )
            return template
        finally:
            _building_types.reset(token)

    async def _create_property(
        self,
        dto_type: type,
        member: MemberInfo,
        members: Sequence[MemberInfo]
    ) -> PropertyBase | None:
        for customization in self._property_customizations:
            if not customization.applies_to_type(dto_type):
                continue
            included = await self._run_hook(
                customization, dto_type, member.name, lambda: customization.include(dto_type, member)
            )
            if not included:
                return None

        prop = await self.create_default_property(dto_type, member, members)

        for customization in self._property_customizations:
            if not customization.applies_to(dto_type, member, prop):
                continue
            result = await self._run_hook(
                customization, dto_type, member.name, lambda: customization.apply(prop, member, self)
            )
            if result is SKIP:
                return None
            if result is not None:
                if not isinstance(result, PropertyBase):
                    raise FormConfigurationError(
                        f"{customization!r} returned {type(result).__name__} for "
                        f"{type_name(dto_type)}.{member.name}, expected a property",
                        dto_type=dto_type,
                        property_name=member.name,
                        hook=customization,
                    )
                prop = result
            if customization.exclusive:
                break

        return prop

    async def create_default_property(
        self,
        dto_type: type,
        member: MemberInfo,
        members: Sequence[MemberInfo] = ()
    ) -> PropertyBase:
        """The property generated for ``member`` before any customization runs."""
        required = not member.is_optional
        kind = classify(member.annotation)
        prop = create_property(
            kind,
            name=wire_name(member, self._camel_case_names),
            prompt=member.name,
            required=required,
            read_only=member.name.lower() == "id",
        )

        if kind is PropertyType.NUMBER:
            if is_integer(member.annotation):
                prop.step = 1
                prop.regex = REQUIRED_INTEGER_REGEX if required else OPTIONAL_INTEGER_REGEX
            elif isinstance(member.value_type, type) and issubclass(member.value_type, (float, Decimal)):
                prop.step = DECIMAL_STEP
                prop.regex = DECIMAL_REGEX

        if supports(prop, "options"):
            prop.options = await self._options_builder.build_options(member, members, required)

        # Untyped members (Any, object, types without members) stay leaves holding the raw value
        if kind is PropertyType.COLLECTION and prop.options is None:
            item_type = split_annotation(element_type(member.annotation))[0]
            if is_mapping(member.annotation) or (
                has_nested_members(item_type)
                and not is_enum(item_type)
                and classify(item_type) is PropertyType.OBJECT
            ):
                prop.templates = await self.create_templates_with_default_entry(item_type)
        elif kind is PropertyType.OBJECT and has_nested_members(member.value_type):
            prop.templates = await self.create_templates_with_default_entry(member.value_type)

        prop = apply_member_annotations(prop, member)

        # Users cannot type a value the server requires, fill in the default
        if (
            prop.required
            and prop.value is None
            and (prop.read_only or prop.type is PropertyType.HIDDEN)
            and member.has_default
        ):
            prop.value = member.get_default()

        return prop

    async def _apply_template_customizations(self, dto_type: type, template: FormTemplate) -> FormTemplate:
        for customization in self._template_customizations:
            if not customization.applies_to(dto_type, template):
                continue
            result = await self._run_hook(customization, dto_type, None, lambda: customization.customize(template, dto_type))
            if result is not None:
                if not isinstance(result, FormTemplate):
                    raise FormConfigurationError(
                        f"{customization!r} returned {type(result).__name__} for {type_name(dto_type)}, expected a template",
                        dto_type=dto_type,
                        hook=customization,
                    )
                template = result
        return template

    async def _run_hook(self, hook: Any, dto_type: type, property_name: str | None, call) -> Any:
        try:
            return await maybe_await(call())
        except FormConfigurationError:
            raise
        except Exception as exc:
            location = type_name(dto_type) if property_name is None else f"{type_name(dto_type)}.{property_name}"
            logger.error_ctx("Form template customization failed", hook=repr(hook), location=location)
            raise FormConfigurationError(
                f"{hook!r} failed for {location}: {exc}",
                dto_type=dto_type,
                property_name=property_name,
                hook=hook,
            ) from exc
