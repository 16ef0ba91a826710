"""HAL-Forms template schemas.

A property is a tagged union keyed by its ``type``: every variant only carries
the attributes meaningful for its kinds, so a ``BoolProperty`` simply has no
``options`` and a ``TextProperty`` has no ``step``. Use ``create_property`` to
build a property for a kind and ``retype`` to move a property to another kind.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from core.constants import MEDIA_TYPE_JSON


class PropertyType(str, Enum):
    HIDDEN = "hidden"
    TEXT = "text"
    TEXTAREA = "textarea"
    SEARCH = "search"
    TEL = "tel"
    URL = "url"
    EMAIL = "email"
    PASSWORD = "password"
    DATE = "date"
    MONTH = "month"
    WEEK = "week"
    TIME = "time"
    DATETIME_LOCAL = "datetime-local"
    NUMBER = "number"
    RANGE = "range"
    COLOR = "color"
    BOOL = "bool"
    DATETIME_OFFSET = "datetime-offset"
    DURATION = "duration"
    IMAGE = "image"
    FILE = "file"
    COLLECTION = "collection"
    OBJECT = "object"


class PropertyPromptDisplayType(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    COLLAPSED = "collapsed"


HAL_FORMS_MODEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "validate_assignment": True,
    "extra": "forbid",
}


class OptionsItem(BaseModel):
    prompt: str
    value: Any = None

    model_config = HAL_FORMS_MODEL_CONFIG


class OptionsLink(BaseModel):
    href: str
    templated: bool = False
    type: str | None = None

    model_config = HAL_FORMS_MODEL_CONFIG


class Options(BaseModel):
    """Selectable values of a property: either inline items or a remote list."""
    inline: list[OptionsItem] | None = None
    link: OptionsLink | None = None
    max_items: int | None = None
    min_items: int | None = None
    prompt_field: str | None = None
    value_field: str | None = None
    selected_values: list[Any] | None = None

    model_config = HAL_FORMS_MODEL_CONFIG

    @model_validator(mode="after")
    def check_single_source(self):
        if self.inline is not None and self.link is not None:
            raise ValueError("Options can either be inline or a link, not both")
        return self


class PropertyBase(BaseModel):
    name: str
    type: PropertyType
    prompt: str | None = None
    prompt_display: PropertyPromptDisplayType | None = None
    placeholder: str | None = None
    read_only: bool = False
    required: bool = False
    templated: bool = False
    value: Any = None
    extensions: dict[str, Any] | None = None

    model_config = HAL_FORMS_MODEL_CONFIG


class TextProperty(PropertyBase):
    type: Literal[
        PropertyType.HIDDEN,
        PropertyType.TEXT,
        PropertyType.TEXTAREA,
        PropertyType.SEARCH,
        PropertyType.TEL,
        PropertyType.URL,
        PropertyType.EMAIL,
        PropertyType.PASSWORD,
        PropertyType.COLOR,
    ] = PropertyType.TEXT
    regex: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    cols: int | None = None
    rows: int | None = None
    options: Options | None = None


class NumberProperty(PropertyBase):
    type: Literal[PropertyType.NUMBER, PropertyType.RANGE] = PropertyType.NUMBER
    min: int | float | None = None
    max: int | float | None = None
    step: int | float | None = None
    regex: str | None = None
    options: Options | None = None


class TemporalProperty(PropertyBase):
    type: Literal[
        PropertyType.DATE,
        PropertyType.MONTH,
        PropertyType.WEEK,
        PropertyType.TIME,
        PropertyType.DATETIME_LOCAL,
        PropertyType.DATETIME_OFFSET,
        PropertyType.DURATION,
    ] = PropertyType.DATETIME_LOCAL
    # Bounds stay opaque: dates, times and durations all qualify
    min: Any = None
    max: Any = None
    step: int | float | None = None
    regex: str | None = None


class BoolProperty(PropertyBase):
    type: Literal[PropertyType.BOOL] = PropertyType.BOOL


class FileProperty(PropertyBase):
    type: Literal[PropertyType.FILE, PropertyType.IMAGE] = PropertyType.FILE


class CollectionProperty(PropertyBase):
    type: Literal[PropertyType.COLLECTION] = PropertyType.COLLECTION
    options: Options | None = None
    templates: dict[str, "FormTemplate"] | None = Field(default=None, alias="_templates")


class ObjectProperty(PropertyBase):
    type: Literal[PropertyType.OBJECT] = PropertyType.OBJECT
    templates: dict[str, "FormTemplate"] | None = Field(default=None, alias="_templates")


Property = Annotated[
    Union[
        TextProperty,
        NumberProperty,
        TemporalProperty,
        BoolProperty,
        FileProperty,
        CollectionProperty,
        ObjectProperty,
    ],
    Field(discriminator="type"),
]


class FormTemplate(BaseModel):
    content_type: str = MEDIA_TYPE_JSON
    method: str | None = None
    properties: list[Property] = Field(default_factory=list)
    target: str | None = None
    title: str | None = None

    model_config = HAL_FORMS_MODEL_CONFIG

    def get_property(self, name: str) -> PropertyBase | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def property_names(self) -> list[str]:
        return [prop.name for prop in self.properties]


CollectionProperty.model_rebuild()
ObjectProperty.model_rebuild()
FormTemplate.model_rebuild()


PROPERTY_CLASSES: dict[PropertyType, type[PropertyBase]] = {
    PropertyType.HIDDEN: TextProperty,
    PropertyType.TEXT: TextProperty,
    PropertyType.TEXTAREA: TextProperty,
    PropertyType.SEARCH: TextProperty,
    PropertyType.TEL: TextProperty,
    PropertyType.URL: TextProperty,
    PropertyType.EMAIL: TextProperty,
    PropertyType.PASSWORD: TextProperty,
    PropertyType.COLOR: TextProperty,
    PropertyType.NUMBER: NumberProperty,
    PropertyType.RANGE: NumberProperty,
    PropertyType.DATE: TemporalProperty,
    PropertyType.MONTH: TemporalProperty,
    PropertyType.WEEK: TemporalProperty,
    PropertyType.TIME: TemporalProperty,
    PropertyType.DATETIME_LOCAL: TemporalProperty,
    PropertyType.DATETIME_OFFSET: TemporalProperty,
    PropertyType.DURATION: TemporalProperty,
    PropertyType.BOOL: BoolProperty,
    PropertyType.FILE: FileProperty,
    PropertyType.IMAGE: FileProperty,
    PropertyType.COLLECTION: CollectionProperty,
    PropertyType.OBJECT: ObjectProperty,
}


def create_property(kind: PropertyType, name: str, **fields: Any) -> PropertyBase:
    kind = PropertyType(kind)
    return PROPERTY_CLASSES[kind](name=name, type=kind, **fields)


def supports(prop: PropertyBase, field_name: str) -> bool:
    """Whether the property's variant has the given attribute."""
    return field_name in type(prop).model_fields


def retype(prop: PropertyBase, kind: PropertyType) -> PropertyBase:
    """Return ``prop`` as a property of ``kind``.

    Attributes the target variant does not know are dropped. When the variant
    stays the same the property is updated in place.
    """
    kind = PropertyType(kind)
    target_class = PROPERTY_CLASSES[kind]
    if isinstance(prop, target_class):
        prop.type = kind
        return prop

    carried = {
        field_name: getattr(prop, field_name)
        for field_name in type(prop).model_fields
        if field_name != "type" and field_name in target_class.model_fields
    }
    return target_class(type=kind, **carried)
