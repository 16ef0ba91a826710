"""HAL resources and HAL-Forms resources."""

from typing import Any

from pydantic import BaseModel, Field

from core.constants import DEFAULT_FORM_TEMPLATE_NAME, SELF_LINK_NAME
from schemas.forms import FormTemplate
from schemas.link import Link


class Resource(BaseModel):
    links: dict[str, list[Link]] = Field(default_factory=dict, alias="_links")
    embedded: dict[str, list[Any]] | None = Field(default=None, alias="_embedded")

    model_config = {"populate_by_name": True}

    def add_link(self, rel: str, link: Link) -> "Resource":
        self.links.setdefault(rel, []).append(link)
        return self

    def add_self_link(self, link: Link) -> "Resource":
        return self.add_link(SELF_LINK_NAME, link)

    def get_link(self, rel: str) -> Link | None:
        links = self.links.get(rel)
        return links[0] if links else None

    def add_embedded(self, rel: str, resource: Any) -> "Resource":
        if self.embedded is None:
            self.embedded = {}
        self.embedded.setdefault(rel, []).append(resource)
        return self


class FormsResource(Resource):
    templates: dict[str, FormTemplate] = Field(default_factory=dict, alias="_templates")

    def add_template(self, name: str, template: FormTemplate) -> "FormsResource":
        self.templates[name] = template
        return self

    @property
    def default_template(self) -> FormTemplate | None:
        return self.templates.get(DEFAULT_FORM_TEMPLATE_NAME)
