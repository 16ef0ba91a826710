"""Hooks working on whole templates and on forms resources."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.constants import DEFAULT_FORM_TEMPLATE_NAME
from schemas.forms import FormTemplate
from schemas.resource import FormsResource
from utils.async_utils import maybe_await

if TYPE_CHECKING:
    from services.form_factory import FormFactory


class FormTemplateCustomization(ABC):
    """Runs once per generated top-level template, before it is cached.

    May add or remove properties and adjust title, target or method. Nested
    object and collection templates are not passed through it.
    """

    def applies_to(self, dto_type: type, template: FormTemplate) -> bool:
        return True

    @abstractmethod
    async def customize(self, template: FormTemplate, dto_type: type) -> FormTemplate | None:
        """Return a replacement template or ``None`` to keep the (mutated) input."""
        pass


class FunctionFormTemplateCustomization(FormTemplateCustomization):
    def __init__(self, function: Callable[[FormTemplate], Any]):
        self.function = function

    async def customize(self, template, dto_type):
        return await maybe_await(self.function(template))

    def __repr__(self):
        return f"{type(self).__name__}({getattr(self.function, '__name__', self.function)!r})"


def as_form_template_customization(hook: Any) -> FormTemplateCustomization:
    if isinstance(hook, FormTemplateCustomization):
        return hook
    if callable(hook):
        return FunctionFormTemplateCustomization(hook)
    raise TypeError(f"{hook!r} is not a form template customization")


@dataclass
class EndpointFormRequest:
    """What the caller asked for when building a resource for an endpoint."""
    value: Any
    method: str | None
    title: str | None = None
    content_type: str | None = None
    action: str | None = None
    route_values: Mapping[str, Any] = field(default_factory=dict)
    dto_type: type | None = None


class FormsResourceGenerationCustomization(ABC):
    """Adds templates to a forms resource built for an endpoint."""
    order: int = 1
    exclusive: bool = False

    def applies_to(self, resource: FormsResource, request: EndpointFormRequest) -> bool:
        return True

    @abstractmethod
    async def apply(
        self,
        resource: FormsResource,
        request: EndpointFormRequest,
        form_factory: "FormFactory"
    ) -> None:
        pass


class DefaultFormsResourceGenerationCustomization(FormsResourceGenerationCustomization):
    """Adds the ``default`` template, submitted to the endpoint itself."""
    order = 0

    def applies_to(self, resource, request):
        return DEFAULT_FORM_TEMPLATE_NAME not in resource.templates

    async def apply(self, resource, request, form_factory):
        target = form_factory.link_factory.get_self_href(request.action, request.route_values)
        template = await form_factory.create_form(
            request.value,
            target,
            request.method,
            request.title,
            request.content_type,
            dto_type=request.dto_type,
        )
        resource.add_template(DEFAULT_FORM_TEMPLATE_NAME, template)
