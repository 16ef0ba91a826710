"""Links to the list endpoints that provide the options of foreign keys."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from core.constants import MEDIA_TYPE_HAL_JSON
from schemas.forms import OptionsLink
from services.link_factory import LinkFactory


class ForeignKeyLinkFactory(ABC):
    """Resolves the remote list a foreign key points at.

    Implementations may be sync or async.
    """

    @abstractmethod
    def can_create_link(self, list_type: type) -> bool:
        pass

    @abstractmethod
    def create_link(self, list_type: type) -> OptionsLink | None:
        pass


class RouteForeignKeyLinkFactory(ForeignKeyLinkFactory):
    """Maps list DTO types to the names of the routes listing them."""

    def __init__(
        self,
        link_factory: LinkFactory,
        routes: Mapping[type, str],
        media_type: str = MEDIA_TYPE_HAL_JSON
    ):
        self._link_factory = link_factory
        self._routes = dict(routes)
        self._media_type = media_type

    def can_create_link(self, list_type: type) -> bool:
        return list_type in self._routes

    def create_link(self, list_type: type) -> OptionsLink | None:
        action = self._routes.get(list_type)
        if action is None:
            return None
        link = self._link_factory.create_templated(action)
        return OptionsLink(href=link.href, templated=link.templated, type=self._media_type)
