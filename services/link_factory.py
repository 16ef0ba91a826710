"""Creation of HAL links for the current request."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from fastapi import Request
from starlette.routing import NoMatchFound

from core.exceptions import FormConfigurationError
from core.logging_config import get_logger
from schemas.link import Link

logger = get_logger(__name__)


class LinkFactory(ABC):
    """Abstract base class for link creation.

    Endpoints are described symbolically by a route name (``action``) and the
    route's path parameters, or by a raw href.
    """

    @abstractmethod
    def get_self_href(
        self,
        action: str | None = None,
        route_values: Mapping[str, Any] | None = None
    ) -> str:
        """Absolute href of an endpoint.

        Args:
            action: Route name; the current request URL when omitted
            route_values: Path parameters of the route

        Raises:
            FormConfigurationError: If no route has that name or the
                parameters do not fit it
        """
        pass

    @abstractmethod
    def create_templated(self, action: str, name: str | None = None, title: str | None = None) -> Link:
        """Link to a route with its path parameters left as URI template variables."""
        pass

    def create(
        self,
        href: str | None = None,
        *,
        name: str | None = None,
        title: str | None = None,
        action: str | None = None,
        route_values: Mapping[str, Any] | None = None
    ) -> Link:
        if href is None:
            href = self.get_self_href(action, route_values)
        return Link(href=href, name=name, title=title)


class RequestLinkFactory(LinkFactory):
    """Builds links from the routes of the app serving ``request``."""

    def __init__(self, request: Request):
        self._request = request

    def get_self_href(self, action=None, route_values=None) -> str:
        if action is None:
            return str(self._request.url)
        try:
            return str(self._request.url_for(action, **{
                key: str(value) for key, value in (route_values or {}).items()
            }))
        except NoMatchFound as exc:
            raise FormConfigurationError(
                f"No route named '{action}' accepts parameters {sorted(route_values or {})}"
            ) from exc

    def create_templated(self, action, name=None, title=None) -> Link:
        for route in self._request.app.router.routes:
            if getattr(route, "name", None) != action:
                continue
            path = getattr(route, "path", None)
            if path is None:
                continue
            base_url = str(self._request.base_url).rstrip("/")
            return Link(href=f"{base_url}{path}", templated="{" in path, name=name, title=title)

        logger.warning_ctx("Route not found for templated link", action=action)
        raise FormConfigurationError(f"No route named '{action}'")
