"""Markers that describe how a DTO member is rendered in a form.

Markers are placed in ``typing.Annotated`` next to the regular pydantic /
``annotated_types`` constraints::

    class CustomerDto(BaseModel):
        id: Annotated[int, Key()]
        email: Annotated[str, DataType.EMAIL_ADDRESS, Display(name="E-mail")]
        notes: Annotated[str | None, DataType.MULTILINE_TEXT] = None
        row_version: Annotated[int, Timestamp()] = 0

Length, range and pattern constraints are read from ``Field(...)`` and
``annotated_types`` (``MinLen``, ``MaxLen``, ``Ge``, ``Le``, ...), so they are
not duplicated here.
"""

from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

from schemas.forms import PropertyPromptDisplayType, PropertyType

T = TypeVar("T", bound=type)

DISPLAY_COLUMN_ATTRIBUTE = "__display_column__"


class DataType(str, Enum):
    DATE_TIME = "date_time"
    DATE = "date"
    TIME = "time"
    DURATION = "duration"
    PHONE_NUMBER = "phone_number"
    CURRENCY = "currency"
    TEXT = "text"
    HTML = "html"
    MULTILINE_TEXT = "multiline_text"
    EMAIL_ADDRESS = "email_address"
    PASSWORD = "password"
    URL = "url"
    IMAGE_URL = "image_url"
    CREDIT_CARD = "credit_card"
    POSTAL_CODE = "postal_code"
    UPLOAD = "upload"


@dataclass(frozen=True)
class Display:
    name: str | None = None
    prompt: str | None = None
    order: int | None = None
    auto_generate: bool = True


@dataclass(frozen=True)
class Editable:
    allow_edit: bool = True


@dataclass(frozen=True)
class Key:
    """Marks the primary key of a DTO."""


@dataclass(frozen=True)
class Required:
    """Forces ``required`` regardless of nullability."""


@dataclass(frozen=True)
class ForeignKey:
    """Points a key member at the member holding the referenced entities."""
    name: str


@dataclass(frozen=True)
class ScaffoldColumn:
    scaffold: bool = True


@dataclass(frozen=True)
class Timestamp:
    pass


@dataclass(frozen=True)
class ConcurrencyCheck:
    pass


@dataclass(frozen=True)
class UIHint:
    kind: PropertyType


@dataclass(frozen=True)
class Step:
    step: float

    def __post_init__(self):
        if self.step < 0:
            raise ValueError("Step must be greater than or equal to 0")


@dataclass(frozen=True)
class PromptDisplay:
    display: PropertyPromptDisplayType


@dataclass(frozen=True)
class FileExtensions:
    """Comma separated list of accepted extensions, e.g. ``"png,jpg"``."""
    extensions: str = "png,jpg,jpeg,gif"


class PropertyExtensionData:
    """Base class for custom data attached to a property's ``extensions``.

    The extension is keyed by the camel-cased class name without the
    ``ExtensionData`` suffix: ``ColorPickerExtensionData`` ends up under
    ``colorPicker``.
    """

    SUFFIX = "ExtensionData"

    @property
    def extension_name(self) -> str:
        name = type(self).__name__
        if name.endswith(self.SUFFIX) and name != self.SUFFIX:
            name = name[:-len(self.SUFFIX)]
        return name[:1].lower() + name[1:]

    def to_extension(self) -> Any:
        if is_dataclass(self):
            return asdict(self)
        return {key: value for key, value in vars(self).items() if not key.startswith("_")}


def display_column(name: str) -> Callable[[T], T]:
    """Class decorator naming the member shown to users when the type is a lookup list."""

    def decorator(cls: T) -> T:
        setattr(cls, DISPLAY_COLUMN_ATTRIBUTE, name)
        return cls

    return decorator


EMAIL_ADDRESS_REGEX = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
CREDIT_CARD_REGEX = r"^(\d{4}[- ]?){3}\d{4}$"

DATA_TYPE_KINDS: dict[DataType, PropertyType] = {
    DataType.DATE_TIME: PropertyType.DATETIME_LOCAL,
    DataType.DATE: PropertyType.DATE,
    DataType.TIME: PropertyType.TIME,
    DataType.DURATION: PropertyType.DURATION,
    DataType.PHONE_NUMBER: PropertyType.TEL,
    DataType.CURRENCY: PropertyType.NUMBER,
    DataType.TEXT: PropertyType.TEXT,
    DataType.HTML: PropertyType.TEXTAREA,
    DataType.MULTILINE_TEXT: PropertyType.TEXTAREA,
    DataType.EMAIL_ADDRESS: PropertyType.EMAIL,
    DataType.PASSWORD: PropertyType.PASSWORD,
    DataType.URL: PropertyType.URL,
    DataType.IMAGE_URL: PropertyType.IMAGE,
    DataType.CREDIT_CARD: PropertyType.TEXT,
    DataType.POSTAL_CODE: PropertyType.TEXT,
    DataType.UPLOAD: PropertyType.FILE,
}

DATA_TYPE_REGEXES: dict[DataType, str] = {
    DataType.EMAIL_ADDRESS: EMAIL_ADDRESS_REGEX,
    DataType.CREDIT_CARD: CREDIT_CARD_REGEX,
}
