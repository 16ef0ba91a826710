from enum import Enum, Flag, auto
from typing import Any, Literal

import pytest
from pydantic import BaseModel

from core.constants import DEFAULT_FORM_TEMPLATE_NAME
from core.exceptions import FormConfigurationError
from services.form_value_factory import FormValueFactory
from services.property_value_customization import FunctionPropertyValueCustomization


class PersonDto(BaseModel):
    name: str
    age: int


class Flags(Enum):
    Flag1 = 1
    Flag2 = 2


class Permission(Flag):
    READ = auto()
    WRITE = auto()


class AccessDto(BaseModel):
    flags: Flags
    permission: Permission = Permission.READ
    note: str | None = None


class AddressDto(BaseModel):
    street: str
    city: str


class CustomerDto(BaseModel):
    first_name: str
    password: str = ""
    home: AddressDto | None = None
    addresses: list[AddressDto] = []
    tags: dict[str, str] = {}
    lucky_numbers: list[int] = []


class IssueDto(BaseModel):
    status: Literal["open", "closed"] = "open"
    labels: list[Literal["bug", "feature"]] = []


class TicketDto(BaseModel):
    tags: list = []
    payload: list[Any] = []
    extra: Any = None


def values_of(template) -> dict:
    return {prop.name: prop.value for prop in template.properties}


@pytest.mark.unit
class TestFormValueFactory:

    @pytest.mark.asyncio
    async def test_fills_leaf_values(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(PersonDto, "POST", "title", "contentType")

        form = await value_factory.fill_with(template, PersonDto(name=person_name, age=30))

        assert values_of(form) == {"name": person_name, "age": 30}
        assert form.method == "POST"
        assert form.title == "title"
        assert form.content_type == "contentType"

    @pytest.mark.asyncio
    async def test_round_trip(self, template_factory, value_factory, person_name):
        person = PersonDto(name=person_name, age=41)
        template = await template_factory.create_template_for(PersonDto, "PUT")

        form = await value_factory.fill_with(template, person)

        assert PersonDto.model_validate(values_of(form)) == person

    @pytest.mark.asyncio
    async def test_template_is_not_mutated(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(PersonDto, "POST")

        first = await value_factory.fill_with(template, PersonDto(name=person_name, age=1))
        second = await value_factory.fill_with(template, PersonDto(name=person_name, age=1))

        assert values_of(template) == {"name": None, "age": None}
        assert first == second

    @pytest.mark.asyncio
    async def test_none_value_gives_blank_copy(self, template_factory, value_factory):
        template = await template_factory.create_template_for(PersonDto, "POST")

        form = await value_factory.fill_with(template, None)

        assert form == template
        assert form is not template

    @pytest.mark.asyncio
    async def test_missing_members_are_left_empty(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(PersonDto, "POST")

        form = await value_factory.fill_with(template, {"Name": person_name})

        assert values_of(form) == {"name": person_name, "age": None}

    @pytest.mark.asyncio
    async def test_mapping_values_match_camel_case_names(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(CustomerDto, "POST")

        form = await value_factory.fill_with(template, {"first_name": person_name})

        assert form.get_property("firstName").value == person_name

    @pytest.mark.asyncio
    async def test_enum_keeps_value_and_marks_selection(self, template_factory, value_factory):
        template = await template_factory.create_template_for(AccessDto, "PUT")

        form = await value_factory.fill_with(
            template, AccessDto(flags=Flags.Flag2, permission=Permission.READ | Permission.WRITE)
        )

        flags = form.get_property("flags")
        assert flags.value is Flags.Flag2
        assert flags.options.selected_values == [Flags.Flag2]

        permission = form.get_property("permission")
        assert permission.options.selected_values == [Permission.READ, Permission.WRITE]

        assert form.get_property("note").value is None

    @pytest.mark.asyncio
    async def test_unset_enum_has_no_selection(self, template_factory, value_factory):
        template = await template_factory.create_template_for(AccessDto, "PUT")

        form = await value_factory.fill_with(template, {"flags": None})

        assert form.get_property("flags").options.selected_values is None


@pytest.mark.unit
class TestNestedValues:

    @pytest.fixture
    def customer(self, person_name) -> CustomerDto:
        return CustomerDto(
            first_name=person_name,
            home=AddressDto(street="Main Street 1", city="Utrecht"),
            addresses=[
                AddressDto(street="Canal 2", city="Amsterdam"),
                AddressDto(street="Harbour 3", city="Rotterdam"),
            ],
            tags={"tier": "gold"},
            lucky_numbers=[3, 7],
        )

    @pytest.mark.asyncio
    async def test_object_members_fill_the_nested_template(self, template_factory, value_factory, customer):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, customer)

        home = form.get_property("home")
        assert home.value is None
        assert values_of(home.templates[DEFAULT_FORM_TEMPLATE_NAME]) == {
            "street": "Main Street 1",
            "city": "Utrecht",
        }

    @pytest.mark.asyncio
    async def test_collection_items_get_indexed_templates(self, template_factory, value_factory, customer):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, customer)

        addresses = form.get_property("addresses")
        assert list(addresses.templates) == [DEFAULT_FORM_TEMPLATE_NAME, "0", "1"]
        assert values_of(addresses.templates[DEFAULT_FORM_TEMPLATE_NAME]) == {"street": None, "city": None}
        assert addresses.templates["0"].title == "0"
        assert addresses.templates["1"].title == "1"
        assert values_of(addresses.templates["1"]) == {"street": "Harbour 3", "city": "Rotterdam"}

    @pytest.mark.asyncio
    async def test_mapping_members_become_key_value_items(self, template_factory, value_factory, customer):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, customer)

        tags = form.get_property("tags")
        assert values_of(tags.templates["0"]) == {"key": "tier", "value": "gold"}

    @pytest.mark.asyncio
    async def test_scalar_collections_keep_the_raw_value(self, template_factory, value_factory, customer):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, customer)

        assert form.get_property("luckyNumbers").value == [3, 7]

    @pytest.mark.asyncio
    async def test_missing_nested_object_leaves_blank_template(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, CustomerDto(first_name=person_name))

        home = form.get_property("home")
        assert home.value is None
        assert values_of(home.templates[DEFAULT_FORM_TEMPLATE_NAME]) == {"street": None, "city": None}
        assert list(form.get_property("addresses").templates) == [DEFAULT_FORM_TEMPLATE_NAME]

    @pytest.mark.asyncio
    async def test_mismatched_collection_value_is_left_empty(self, template_factory, value_factory, person_name):
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await value_factory.fill_with(template, {"firstName": person_name, "addresses": 5})

        addresses = form.get_property("addresses")
        assert addresses.value is None
        assert list(addresses.templates) == [DEFAULT_FORM_TEMPLATE_NAME]

    @pytest.mark.asyncio
    async def test_untyped_members_round_trip(self, template_factory, value_factory):
        template = await template_factory.create_template_for(TicketDto, "PUT")

        form = await value_factory.fill_with(
            template, TicketDto(tags=["a", "b"], payload=[1, 2], extra={"source": "mail"})
        )

        assert values_of(form) == {"tags": ["a", "b"], "payload": [1, 2], "extra": {"source": "mail"}}
        assert all(prop.templates is None for prop in form.properties)

    @pytest.mark.asyncio
    async def test_literal_values_are_selected(self, template_factory, value_factory):
        template = await template_factory.create_template_for(IssueDto, "PUT")

        form = await value_factory.fill_with(template, IssueDto(status="closed", labels=["bug"]))

        status = form.get_property("status")
        assert status.value == "closed"
        assert status.options.selected_values == ["closed"]
        labels = form.get_property("labels")
        assert labels.value == ["bug"]
        assert labels.options.selected_values == ["bug"]


@pytest.mark.unit
class TestValueCustomizations:

    @pytest.mark.asyncio
    async def test_hook_replaces_value(self, template_factory, person_name):
        def redact(prop, value):
            return "********" if prop.name == "password" else value

        factory = FormValueFactory([redact])
        template = await template_factory.create_template_for(CustomerDto, "PUT")

        form = await factory.fill_with(template, CustomerDto(first_name=person_name, password="hunter2"))

        assert form.get_property("password").value == "********"
        assert form.get_property("firstName").value == person_name

    @pytest.mark.asyncio
    async def test_exclusive_hook_stops_the_chain(self, template_factory, person_name):
        async def upper(prop, value):
            return value.upper() if isinstance(value, str) else value

        factory = FormValueFactory([
            FunctionPropertyValueCustomization(upper, exclusive=True),
            FunctionPropertyValueCustomization(lambda prop, value: "replaced", order=2),
        ])
        template = await template_factory.create_template_for(PersonDto, "POST")

        form = await factory.fill_with(template, PersonDto(name=person_name, age=5))

        assert form.get_property("name").value == person_name.upper()

    @pytest.mark.asyncio
    async def test_failing_hook_is_a_configuration_error(self, template_factory, person_name):
        def broken(prop, value):
            raise KeyError(prop.name)

        template = await template_factory.create_template_for(PersonDto, "POST")

        with pytest.raises(FormConfigurationError) as exc_info:
            await FormValueFactory([broken]).fill_with(template, PersonDto(name=person_name, age=5))

        assert exc_info.value.property_name == "name"
        assert exc_info.value.dto_type is PersonDto
        assert isinstance(exc_info.value.__cause__, KeyError)
