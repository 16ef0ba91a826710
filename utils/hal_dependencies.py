"""FastAPI dependencies providing request scoped HAL-Forms factories.

Configure the factories once on the app::

    configure_hal_forms(app, HalFormsConfig(
        foreign_key_routes={CustomerDto: "list_customers"},
        property_value_customizations=[redact_secrets],
    ))

and depend on ``get_form_factory`` in endpoints.
"""

from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, FastAPI, Request

from core.logging_config import LogContext, get_logger, setup_logging
from services.foreign_key_link_factory import ForeignKeyLinkFactory, RouteForeignKeyLinkFactory
from services.form_factory import FormFactory
from services.form_template_factory import FormTemplateFactory
from services.form_value_factory import FormValueFactory
from services.forms_resource_customization import FormsResourceGenerationCustomization
from services.link_factory import LinkFactory, RequestLinkFactory
from services.options_builder import OptionsBuilder
from services.template_cache import get_template_cache

logger = get_logger(__name__)

@dataclass
class HalFormsConfig:
    property_template_customizations: list[Any] = field(default_factory=list)
    template_customizations: list[Any] = field(default_factory=list)
    property_value_customizations: list[Any] = field(default_factory=list)
    resource_customizations: list[FormsResourceGenerationCustomization] = field(default_factory=list)
    foreign_key_link_factories: list[ForeignKeyLinkFactory] = field(default_factory=list)
    # List DTO type -> name of the route listing it
    foreign_key_routes: dict[type, str] = field(default_factory=dict)


def get_hal_forms_config(request: Request) -> HalFormsConfig:
    return getattr(request.app.state, "hal_forms", None) or HalFormsConfig()


def get_link_factory(request: Request) -> LinkFactory:
    return RequestLinkFactory(request)


def get_form_factory(
    link_factory: LinkFactory = Depends(get_link_factory),
    config: HalFormsConfig = Depends(get_hal_forms_config)
) -> FormFactory:
    """Form factory bound to the current request.

    Templates are shared through the process wide template cache, so the
    link hrefs they contain are those of the first request generating them.
    """
    foreign_key_link_factories = list(config.foreign_key_link_factories)
    if config.foreign_key_routes:
        foreign_key_link_factories.append(RouteForeignKeyLinkFactory(link_factory, config.foreign_key_routes))

    template_factory = FormTemplateFactory(
        property_customizations=config.property_template_customizations,
        template_customizations=config.template_customizations,
        options_builder=OptionsBuilder(foreign_key_link_factories),
        cache=get_template_cache(),
    )
    value_factory = FormValueFactory(config.property_value_customizations)
    return FormFactory(template_factory, value_factory, link_factory, config.resource_customizations)


def configure_hal_forms(
    app: FastAPI,
    config: HalFormsConfig | None = None,
    configure_logging: bool = True
) -> HalFormsConfig:
    """Install the HAL-Forms configuration and request logging on ``app``."""
    if configure_logging:
        setup_logging()
    config = config or HalFormsConfig()
    app.state.hal_forms = config

    @app.middleware("http")
    async def log_hal_forms_requests(request: Request, call_next):
        with LogContext(path=request.url.path, method=request.method):
            try:
                return await call_next(request)
            except Exception:
                logger.exception(f"Request exception: {request.method} {request.url.path}")
                raise

    return config
