"""Explicit description of the members of a DTO type.

Pydantic models, dataclasses and annotated plain classes are turned into an
ordered list of ``MemberInfo`` records. Everything downstream (classification,
options, markers) works on these records instead of poking at the type.
"""

import dataclasses
import inspect
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin

from pydantic import BaseModel, create_model
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticUndefined

from core.logging_config import get_logger

logger = get_logger(__name__)

NONE_TYPE = type(None)


@dataclass(frozen=True)
class MemberInfo:
    name: str
    annotation: Any
    declaring_type: type
    metadata: tuple[Any, ...] = ()
    alias: str | None = None
    title: str | None = None
    frozen: bool = False
    default: Any = PydanticUndefined
    default_factory: Any = None

    @property
    def value_type(self) -> Any:
        """The annotation without ``Annotated`` and ``Optional`` wrappers."""
        return split_annotation(self.annotation)[0]

    @property
    def is_optional(self) -> bool:
        return split_annotation(self.annotation)[2]

    @property
    def has_default(self) -> bool:
        return self.default is not PydanticUndefined or self.default_factory is not None

    def get_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is PydanticUndefined:
            return None
        return self.default

    def find(self, marker_type: type) -> Any | None:
        for marker in self.metadata:
            if isinstance(marker, marker_type):
                return marker
        return None

    def has(self, marker_type: type) -> bool:
        return self.find(marker_type) is not None


def split_annotation(annotation: Any) -> tuple[Any, tuple[Any, ...], bool]:
    """Peel ``Annotated`` and ``Optional`` layers off an annotation.

    Returns the underlying type, the metadata collected from every
    ``Annotated`` layer and whether ``None`` was part of the annotation.
    """
    metadata: list[Any] = []
    optional = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            metadata.extend(annotation.__metadata__)
            annotation = annotation.__origin__
            continue
        if origin is Union or origin is types.UnionType:
            args = get_args(annotation)
            remaining = [arg for arg in args if arg is not NONE_TYPE]
            if len(remaining) < len(args):
                optional = True
            if len(remaining) == 1:
                annotation = remaining[0]
                continue
            if len(remaining) < len(args):
                annotation = Union[tuple(remaining)]
        return annotation, tuple(metadata), optional


def type_name(dto_type: Any) -> str:
    return getattr(dto_type, "__name__", repr(dto_type))


def normalize_member_name(name: str) -> str:
    return name.replace("_", "").lower()


def wire_name(member: MemberInfo, camel_case: bool) -> str:
    if member.alias:
        return member.alias
    return to_camel(member.name) if camel_case else member.name


def _declaring_type(dto_type: type, name: str) -> type:
    # Most derived class whose own annotations declare the member
    for klass in dto_type.__mro__:
        if name in inspect.get_annotations(klass):
            return klass
    return dto_type


def _is_class_var(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _describe_pydantic_model(dto_type: type[BaseModel]) -> list[MemberInfo]:
    members = []
    for name, field in dto_type.model_fields.items():
        if field.exclude:
            continue
        members.append(MemberInfo(
            name=name,
            annotation=field.annotation,
            declaring_type=_declaring_type(dto_type, name),
            metadata=tuple(field.metadata) + split_annotation(field.annotation)[1],
            alias=field.alias if field.alias != name else None,
            title=field.title,
            frozen=bool(field.frozen),
            default=field.default,
            default_factory=field.default_factory,
        ))
    return members


def _describe_dataclass(dto_type: type) -> list[MemberInfo]:
    hints = typing.get_type_hints(dto_type, include_extras=True)
    members = []
    for field in dataclasses.fields(dto_type):
        annotation = hints.get(field.name, Any)
        members.append(MemberInfo(
            name=field.name,
            annotation=annotation,
            declaring_type=_declaring_type(dto_type, field.name),
            metadata=split_annotation(annotation)[1],
            default=PydanticUndefined if field.default is dataclasses.MISSING else field.default,
            default_factory=None if field.default_factory is dataclasses.MISSING else field.default_factory,
        ))
    return members


def _describe_plain_class(dto_type: type) -> list[MemberInfo]:
    try:
        hints = typing.get_type_hints(dto_type, include_extras=True)
    except (NameError, TypeError):
        logger.debug_ctx("Could not resolve annotations", dto_type=type_name(dto_type))
        return []
    members = []
    for name, annotation in hints.items():
        if _is_class_var(annotation):
            continue
        members.append(MemberInfo(
            name=name,
            annotation=annotation,
            declaring_type=_declaring_type(dto_type, name),
            metadata=split_annotation(annotation)[1],
            default=getattr(dto_type, name, PydanticUndefined),
        ))
    return members


@lru_cache(maxsize=1024)
def describe_members(dto_type: Any) -> tuple[MemberInfo, ...]:
    """Public members of ``dto_type`` in declaration order."""
    if not isinstance(dto_type, type):
        return ()
    if issubclass(dto_type, BaseModel):
        members = _describe_pydantic_model(dto_type)
    elif dataclasses.is_dataclass(dto_type):
        members = _describe_dataclass(dto_type)
    elif dto_type.__module__ == "builtins":
        members = []
    else:
        members = _describe_plain_class(dto_type)
    return tuple(member for member in members if not member.name.startswith("_"))


def find_member(members: typing.Iterable[MemberInfo], name: str) -> MemberInfo | None:
    wanted = normalize_member_name(name)
    for member in members:
        if normalize_member_name(member.name) == wanted:
            return member
        if member.alias and normalize_member_name(member.alias) == wanted:
            return member
    return None


def read_member_value(instance: Any, name: str) -> tuple[bool, Any]:
    """Read the member matching ``name`` from an object or mapping.

    Matching ignores case and underscores so ``firstName`` finds
    ``first_name``. Returns ``(found, value)``.
    """
    wanted = normalize_member_name(name)
    if isinstance(instance, Mapping):
        for key, value in instance.items():
            if isinstance(key, str) and normalize_member_name(key) == wanted:
                return True, value
        return False, None

    member = find_member(describe_members(type(instance)), name)
    if member is not None:
        try:
            return True, getattr(instance, member.name)
        except AttributeError:
            return False, None

    for key, value in getattr(instance, "__dict__", {}).items():
        if not key.startswith("_") and normalize_member_name(key) == wanted:
            return True, value
    return False, None


@lru_cache(maxsize=None)
def key_value_pair_type(key_type: Any, value_type: Any) -> type[BaseModel]:
    """Element type used to render mappings as collections of key/value pairs."""
    return create_model(
        f"KeyValuePair[{type_name(key_type)}, {type_name(value_type)}]",
        key=(key_type, ...),
        value=(value_type, ...),
    )
