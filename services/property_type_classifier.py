"""Maps member annotations to HAL-Forms property kinds.

``classify`` is total: anything it does not recognise is an object. Only the
annotation is looked at, never the member name, and nullability is ignored
(it only decides ``required``).
"""

import collections.abc
import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, get_args, get_origin

from pydantic import (
    AnyUrl,
    AwareDatetime,
    BaseModel,
    EmailStr,
    FutureDate,
    FutureDatetime,
    NaiveDatetime,
    PastDate,
    PastDatetime,
    SecretStr,
)
from pydantic_core import Url as CoreUrl

from schemas.binary import HalFile, HalImage
from schemas.forms import PropertyType
from services.member_metadata import key_value_pair_type, split_annotation

COLLECTION_ORIGINS = (
    list,
    set,
    frozenset,
    tuple,
    collections.deque,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)
MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
TEXT_LIKE = (str, bytes, bytearray)


def _origin(annotation: Any) -> Any:
    return get_origin(annotation) or annotation


def is_mapping(annotation: Any) -> bool:
    origin = _origin(split_annotation(annotation)[0])
    return isinstance(origin, type) and issubclass(origin, MAPPING_ORIGINS)


def is_collection(annotation: Any) -> bool:
    origin = _origin(split_annotation(annotation)[0])
    if not isinstance(origin, type) or issubclass(origin, TEXT_LIKE + (BaseModel, Enum)):
        return False
    if origin in COLLECTION_ORIGINS:
        return True
    return issubclass(origin, MAPPING_ORIGINS + (list, tuple, set, frozenset))


def is_enum(annotation: Any) -> bool:
    value_type = split_annotation(annotation)[0]
    return isinstance(value_type, type) and issubclass(value_type, Enum)


def is_literal(annotation: Any) -> bool:
    return get_origin(split_annotation(annotation)[0]) is Literal


def literal_values(annotation: Any) -> tuple[Any, ...]:
    """Values allowed by a ``Literal`` annotation, in declaration order."""
    if not is_literal(annotation):
        return ()
    return get_args(split_annotation(annotation)[0])


def is_integer(annotation: Any) -> bool:
    value_type = split_annotation(annotation)[0]
    return (
        isinstance(value_type, type)
        and issubclass(value_type, int)
        and not issubclass(value_type, (bool, Enum))
    )


def element_type(annotation: Any) -> Any:
    """Element type of a collection annotation; ``Any`` when it is not declared."""
    value_type = split_annotation(annotation)[0]
    args = get_args(value_type)
    if is_mapping(value_type):
        key_type = args[0] if args else Any
        item_type = args[1] if len(args) > 1 else Any
        return key_value_pair_type(key_type, item_type)
    if _origin(value_type) is tuple and len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    if args:
        return args[0]
    return Any


def _classify_temporal(value_type: Any) -> PropertyType | None:
    if value_type is AwareDatetime:
        return PropertyType.DATETIME_OFFSET
    if value_type in (NaiveDatetime, PastDatetime, FutureDatetime):
        return PropertyType.DATETIME_LOCAL
    if value_type in (PastDate, FutureDate):
        return PropertyType.DATE
    if not isinstance(value_type, type):
        return None
    # datetime is a date subclass, check it first
    if issubclass(value_type, datetime.datetime):
        return PropertyType.DATETIME_LOCAL
    if issubclass(value_type, datetime.date):
        return PropertyType.DATE
    if issubclass(value_type, datetime.time):
        return PropertyType.TIME
    if issubclass(value_type, datetime.timedelta):
        return PropertyType.DURATION
    return None


def classify(annotation: Any) -> PropertyType:
    value_type = split_annotation(annotation)[0]

    if value_type is bool:
        return PropertyType.BOOL
    if is_enum(value_type):
        return PropertyType.TEXT
    if is_literal(value_type):
        values = literal_values(value_type)
        if values and all(isinstance(value, int) and not isinstance(value, bool) for value in values):
            return PropertyType.NUMBER
        return PropertyType.TEXT

    temporal = _classify_temporal(value_type)
    if temporal is not None:
        return temporal

    if isinstance(value_type, type):
        if issubclass(value_type, (int, float, Decimal)) and not issubclass(value_type, bool):
            return PropertyType.NUMBER
        if issubclass(value_type, HalImage):
            return PropertyType.IMAGE
        if issubclass(value_type, (bytes, bytearray, HalFile)):
            return PropertyType.FILE
        if issubclass(value_type, SecretStr):
            return PropertyType.PASSWORD
        if value_type is EmailStr:
            return PropertyType.EMAIL
        if issubclass(value_type, (AnyUrl, CoreUrl)):
            return PropertyType.URL
        if issubclass(value_type, (str, uuid.UUID)):
            return PropertyType.TEXT

    if is_collection(value_type):
        return PropertyType.COLLECTION

    return PropertyType.OBJECT
