from pydantic import BaseModel


class Link(BaseModel):
    """A HAL link object."""
    href: str
    templated: bool = False
    name: str | None = None
    title: str | None = None
    type: str | None = None
    deprecation: str | None = None
    hreflang: str | None = None
    profile: str | None = None

    model_config = {"populate_by_name": True}
