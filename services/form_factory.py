"""Filled, linked HAL-Forms resources."""

from collections.abc import Iterable, Mapping
from typing import Any

from core.constants import DEFAULT_FORM_TEMPLATE_NAME
from core.exceptions import FormConfigurationError
from core.logging_config import get_logger
from schemas.forms import FormTemplate
from schemas.resource import FormsResource
from services.form_template_factory import FormTemplateFactory
from services.form_value_factory import FormValueFactory
from services.forms_resource_customization import (
    DefaultFormsResourceGenerationCustomization,
    EndpointFormRequest,
    FormsResourceGenerationCustomization,
)
from services.link_factory import LinkFactory
from services.member_metadata import type_name

logger = get_logger(__name__)


def ensure_addressable(template: FormTemplate, name: str = DEFAULT_FORM_TEMPLATE_NAME):
    """A form without target and method cannot be submitted anywhere."""
    if template.target is None and template.method is None:
        raise FormConfigurationError(
            f"Template '{name}' has neither a target nor a method"
        )


class FormFactory:
    """Composes template generation, value filling and link creation."""

    def __init__(
        self,
        template_factory: FormTemplateFactory,
        value_factory: FormValueFactory,
        link_factory: LinkFactory,
        resource_customizations: Iterable[FormsResourceGenerationCustomization] | None = None
    ):
        self._template_factory = template_factory
        self._value_factory = value_factory
        self._link_factory = link_factory
        self._resource_customizations = sorted(
            [DefaultFormsResourceGenerationCustomization(), *(resource_customizations or [])],
            key=lambda c: c.order,
        )

    @property
    def link_factory(self) -> LinkFactory:
        return self._link_factory

    @property
    def template_factory(self) -> FormTemplateFactory:
        return self._template_factory

    async def create_template_for(
        self,
        dto_type: type,
        method: str | None = None,
        title: str | None = None,
        content_type: str | None = None
    ) -> FormTemplate:
        return await self._template_factory.create_template_for(dto_type, method, title, content_type)

    async def create_templates_with_default_entry(
        self,
        dto_type: type,
        method: str | None = None,
        title: str | None = None,
        content_type: str | None = None
    ) -> dict[str, FormTemplate] | None:
        return await self._template_factory.create_templates_with_default_entry(dto_type, method, title, content_type)

    async def create_form(
        self,
        value: Any,
        target: str | None,
        method: str | None,
        title: str | None = None,
        content_type: str | None = None,
        *,
        dto_type: type | None = None
    ) -> FormTemplate:
        """Template for the value's type, filled with ``value`` and bound to ``target``.

        Pass ``dto_type`` for blank forms (``value`` is ``None``) or when the
        value is a mapping.
        """
        if dto_type is None:
            if value is None:
                raise FormConfigurationError("A blank form needs an explicit dto_type")
            dto_type = type(value)

        template = await self._template_factory.create_template_for(dto_type, method, title, content_type)
        form = await self._value_factory.fill_with(template, value)
        form.target = target
        return form

    def create_resource(self, default_template: FormTemplate) -> FormsResource:
        ensure_addressable(default_template)
        return FormsResource(templates={DEFAULT_FORM_TEMPLATE_NAME: default_template})

    async def create_default_resource(
        self,
        value: Any,
        target: str | None,
        method: str | None,
        title: str | None = None,
        content_type: str | None = None,
        *,
        dto_type: type | None = None
    ) -> FormsResource:
        form = await self.create_form(value, target, method, title, content_type, dto_type=dto_type)
        return self.create_resource(form)

    async def create_resource_for_endpoint(
        self,
        value: Any,
        method: str | None,
        title: str | None = None,
        content_type: str | None = None,
        *,
        action: str | None = None,
        route_values: Mapping[str, Any] | None = None,
        dto_type: type | None = None
    ) -> FormsResource:
        """Forms resource for the endpoint ``action`` with a self link and its templates.

        The default template targets the endpoint itself; registered resource
        customizations may add further templates.
        """
        request = EndpointFormRequest(
            value=value,
            method=method,
            title=title,
            content_type=content_type,
            action=action,
            route_values=dict(route_values or {}),
            dto_type=dto_type,
        )
        resource = FormsResource()
        resource.add_self_link(self._link_factory.create(action=action, route_values=request.route_values))

        for customization in self._resource_customizations:
            if not customization.applies_to(resource, request):
                continue
            try:
                await customization.apply(resource, request, self)
            except FormConfigurationError:
                raise
            except Exception as exc:
                logger.error_ctx("Forms resource customization failed", hook=repr(customization), action=action)
                raise FormConfigurationError(
                    f"{customization!r} failed for endpoint '{action}': {exc}",
                    dto_type=dto_type or (type(value) if value is not None else None),
                    hook=customization,
                ) from exc
            if customization.exclusive:
                break

        if DEFAULT_FORM_TEMPLATE_NAME not in resource.templates:
            raise FormConfigurationError(
                f"Forms resource for '{action}' has no '{DEFAULT_FORM_TEMPLATE_NAME}' template"
            )
        for name, template in resource.templates.items():
            ensure_addressable(template, name)

        logger.debug_ctx(
            "Created forms resource",
            action=action,
            dto_type=type_name(dto_type or type(value)),
            templates=sorted(resource.templates),
        )
        return resource
