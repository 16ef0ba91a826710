"""Applies member markers and constraints to generated properties.

Absence of a constraint means "unconstrained": nothing is written for it.
"""

from functools import singledispatch
from typing import Any

from annotated_types import Ge, GroupedMetadata, Gt, Le, Lt, MaxLen, MinLen, MultipleOf

from schemas.form_annotations import (
    DATA_TYPE_KINDS,
    DATA_TYPE_REGEXES,
    ConcurrencyCheck,
    DataType,
    Display,
    Editable,
    FileExtensions,
    Key,
    PromptDisplay,
    PropertyExtensionData,
    Required,
    ScaffoldColumn,
    Step,
    Timestamp,
    UIHint,
)
from schemas.forms import PropertyBase, PropertyType, retype, supports
from services.member_metadata import MemberInfo


def is_excluded(member: MemberInfo) -> bool:
    scaffold = member.find(ScaffoldColumn)
    if scaffold is not None and not scaffold.scaffold:
        return True
    display = member.find(Display)
    return display is not None and not display.auto_generate


def display_order(member: MemberInfo) -> int:
    display = member.find(Display)
    if display is None or display.order is None:
        return 0
    return display.order


def apply_member_annotations(prop: PropertyBase, member: MemberInfo) -> PropertyBase:
    if member.title:
        prop.prompt = member.title
    if member.frozen:
        prop.read_only = True
    for marker in member.metadata:
        prop = apply_marker(marker, prop)
    return prop


def _set_if_supported(prop: PropertyBase, field_name: str, value: Any) -> bool:
    if not supports(prop, field_name):
        return False
    setattr(prop, field_name, value)
    return True


def _options(prop: PropertyBase):
    return getattr(prop, "options", None)


def _item_options(prop: PropertyBase):
    # Length constraints on collections bound the number of selected items
    if prop.type is not PropertyType.COLLECTION:
        return None
    return _options(prop)


@singledispatch
def apply_marker(marker: Any, prop: PropertyBase) -> PropertyBase:
    if isinstance(marker, GroupedMetadata):
        for item in marker:
            prop = apply_marker(item, prop)
        return prop
    # pydantic keeps Field(pattern=...) as general metadata carrying the pattern
    pattern = getattr(marker, "pattern", None)
    if isinstance(pattern, str):
        _set_if_supported(prop, "regex", pattern)
    return prop


@apply_marker.register
def _(marker: MinLen, prop: PropertyBase) -> PropertyBase:
    options = _item_options(prop)
    if options is not None:
        options.min_items = marker.min_length
    else:
        _set_if_supported(prop, "min_length", marker.min_length)
    return prop


@apply_marker.register
def _(marker: MaxLen, prop: PropertyBase) -> PropertyBase:
    options = _item_options(prop)
    if options is not None:
        options.max_items = marker.max_length
    else:
        _set_if_supported(prop, "max_length", marker.max_length)
    return prop


def _is_whole_number_step(prop: PropertyBase) -> bool:
    return getattr(prop, "step", None) == 1


@apply_marker.register
def _(marker: Ge, prop: PropertyBase) -> PropertyBase:
    _set_if_supported(prop, "min", marker.ge)
    return prop


@apply_marker.register
def _(marker: Gt, prop: PropertyBase) -> PropertyBase:
    # HAL-Forms bounds are inclusive
    bound = marker.gt + 1 if isinstance(marker.gt, int) and _is_whole_number_step(prop) else marker.gt
    _set_if_supported(prop, "min", bound)
    return prop


@apply_marker.register
def _(marker: Le, prop: PropertyBase) -> PropertyBase:
    _set_if_supported(prop, "max", marker.le)
    return prop


@apply_marker.register
def _(marker: Lt, prop: PropertyBase) -> PropertyBase:
    bound = marker.lt - 1 if isinstance(marker.lt, int) and _is_whole_number_step(prop) else marker.lt
    _set_if_supported(prop, "max", bound)
    return prop


@apply_marker.register
def _(marker: MultipleOf, prop: PropertyBase) -> PropertyBase:
    _set_if_supported(prop, "step", marker.multiple_of)
    return prop


@apply_marker.register
def _(marker: Step, prop: PropertyBase) -> PropertyBase:
    _set_if_supported(prop, "step", marker.step)
    return prop


@apply_marker.register
def _(marker: DataType, prop: PropertyBase) -> PropertyBase:
    prop = retype(prop, DATA_TYPE_KINDS[marker])
    regex = DATA_TYPE_REGEXES.get(marker)
    if regex is not None:
        _set_if_supported(prop, "regex", regex)
    return prop


@apply_marker.register
def _(marker: FileExtensions, prop: PropertyBase) -> PropertyBase:
    if prop.type not in (PropertyType.FILE, PropertyType.IMAGE):
        prop = retype(prop, PropertyType.FILE)
    prop.placeholder = marker.extensions
    return prop


@apply_marker.register
def _(marker: UIHint, prop: PropertyBase) -> PropertyBase:
    return retype(prop, marker.kind)


@apply_marker.register
def _(marker: Timestamp, prop: PropertyBase) -> PropertyBase:
    return retype(prop, PropertyType.HIDDEN)


@apply_marker.register
def _(marker: ConcurrencyCheck, prop: PropertyBase) -> PropertyBase:
    return retype(prop, PropertyType.HIDDEN)


@apply_marker.register
def _(marker: Display, prop: PropertyBase) -> PropertyBase:
    if marker.name is not None:
        prop.prompt = marker.name
    if marker.prompt is not None:
        prop.placeholder = marker.prompt
    return prop


@apply_marker.register
def _(marker: Editable, prop: PropertyBase) -> PropertyBase:
    if not marker.allow_edit:
        prop.read_only = True
    return prop


@apply_marker.register
def _(marker: Key, prop: PropertyBase) -> PropertyBase:
    prop.read_only = True
    prop.required = True
    return prop


@apply_marker.register
def _(marker: Required, prop: PropertyBase) -> PropertyBase:
    prop.required = True
    options = _options(prop)
    if options is not None and options.inline is not None and options.min_items == 0:
        options.min_items = 1
    return prop


@apply_marker.register
def _(marker: PromptDisplay, prop: PropertyBase) -> PropertyBase:
    prop.prompt_display = marker.display
    return prop


@apply_marker.register
def _(marker: PropertyExtensionData, prop: PropertyBase) -> PropertyBase:
    prop.extensions = {**(prop.extensions or {}), marker.extension_name: marker.to_extension()}
    return prop
