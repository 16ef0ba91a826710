import pytest
from pydantic import BaseModel

from core.constants import DEFAULT_FORM_TEMPLATE_NAME, SELF_LINK_NAME
from core.exceptions import FormConfigurationError
from schemas.forms import FormTemplate, PropertyType
from services.form_factory import FormFactory, ensure_addressable
from services.forms_resource_customization import FormsResourceGenerationCustomization

SELF_HREF = "http://testserver/customers/1"


class PersonDto(BaseModel):
    name: str
    age: int


class AddDeleteTemplate(FormsResourceGenerationCustomization):

    async def apply(self, resource, request, form_factory):
        template = await form_factory.create_template_for(PersonDto, "DELETE", "Remove")
        template.target = form_factory.link_factory.get_self_href(request.action, request.route_values)
        resource.add_template("delete", template)


class AddUnaddressableTemplate(FormsResourceGenerationCustomization):

    async def apply(self, resource, request, form_factory):
        resource.add_template("broken", FormTemplate())


class ReplaceDefault(FormsResourceGenerationCustomization):
    order = -1
    exclusive = True

    async def apply(self, resource, request, form_factory):
        pass


class FailingCustomization(FormsResourceGenerationCustomization):

    async def apply(self, resource, request, form_factory):
        raise RuntimeError("cannot add templates")


@pytest.mark.unit
class TestCreateForm:

    @pytest.mark.asyncio
    async def test_filled_form_with_target(self, form_factory, person_name):
        form = await form_factory.create_form(
            PersonDto(name=person_name, age=42), "target", "POST", "title", "contentType"
        )

        assert form.target == "target"
        assert form.method == "POST"
        assert form.title == "title"
        assert form.content_type == "contentType"
        assert len(form.properties) == 2

        name, age = form.properties
        assert (name.type, name.value, name.required, name.read_only) == (PropertyType.TEXT, person_name, True, False)
        assert (age.type, age.value, age.required, age.read_only) == (PropertyType.NUMBER, 42, True, False)

    @pytest.mark.asyncio
    async def test_blank_form_needs_a_type(self, form_factory):
        with pytest.raises(FormConfigurationError, match="dto_type"):
            await form_factory.create_form(None, "http://localhost/people", "POST")

        form = await form_factory.create_form(None, "http://localhost/people", "POST", dto_type=PersonDto)

        assert form.property_names() == ["name", "age"]
        assert all(prop.value is None for prop in form.properties)

    @pytest.mark.asyncio
    async def test_mapping_value_with_explicit_type(self, form_factory, person_name):
        form = await form_factory.create_form(
            {"name": person_name, "age": 7}, None, "PUT", dto_type=PersonDto
        )

        assert form.get_property("age").value == 7
        assert form.target is None

    @pytest.mark.asyncio
    async def test_template_delegation(self, form_factory):
        template = await form_factory.create_template_for(PersonDto, "POST")
        templates = await form_factory.create_templates_with_default_entry(PersonDto, "POST")

        assert templates == {DEFAULT_FORM_TEMPLATE_NAME: template}


@pytest.mark.unit
class TestCreateResource:

    def test_resource_with_default_template(self, form_factory):
        template = FormTemplate(method="POST", target="http://localhost/people")

        resource = form_factory.create_resource(template)

        assert resource.default_template == template
        assert resource.model_dump(by_alias=True, exclude_none=True)["_templates"] == {
            "default": {
                "contentType": "application/json",
                "method": "POST",
                "properties": [],
                "target": "http://localhost/people",
            }
        }

    def test_template_without_target_and_method_is_rejected(self, form_factory):
        with pytest.raises(FormConfigurationError, match="neither a target nor a method"):
            form_factory.create_resource(FormTemplate())

    def test_method_alone_is_addressable(self):
        ensure_addressable(FormTemplate(method="POST"))
        ensure_addressable(FormTemplate(target="http://localhost/people"))

    @pytest.mark.asyncio
    async def test_default_resource(self, form_factory, person_name):
        resource = await form_factory.create_default_resource(
            PersonDto(name=person_name, age=3), "http://localhost/people/1", "PUT"
        )

        assert list(resource.templates) == [DEFAULT_FORM_TEMPLATE_NAME]
        assert resource.default_template.target == "http://localhost/people/1"
        assert resource.default_template.get_property("name").value == person_name


@pytest.mark.unit
class TestCreateResourceForEndpoint:

    @pytest.mark.asyncio
    async def test_self_link_and_default_template(self, form_factory, link_factory, person_name):
        resource = await form_factory.create_resource_for_endpoint(
            PersonDto(name=person_name, age=30),
            "PUT",
            "Edit",
            action="get_customer",
            route_values={"customer_id": 1},
        )

        assert resource.get_link(SELF_LINK_NAME).href == SELF_HREF
        assert resource.default_template.target == SELF_HREF
        assert resource.default_template.method == "PUT"
        assert resource.default_template.title == "Edit"
        assert resource.default_template.get_property("name").value == person_name
        link_factory.create.assert_called_once_with(action="get_customer", route_values={"customer_id": 1})
        link_factory.get_self_href.assert_called_once_with("get_customer", {"customer_id": 1})

    @pytest.mark.asyncio
    async def test_blank_endpoint_form(self, form_factory):
        resource = await form_factory.create_resource_for_endpoint(None, "POST", dto_type=PersonDto)

        assert resource.default_template.property_names() == ["name", "age"]

    @pytest.mark.asyncio
    async def test_customizations_add_templates(self, template_factory, value_factory, link_factory, person_name):
        factory = FormFactory(template_factory, value_factory, link_factory, [AddDeleteTemplate()])

        resource = await factory.create_resource_for_endpoint(PersonDto(name=person_name, age=30), "PUT")

        assert list(resource.templates) == [DEFAULT_FORM_TEMPLATE_NAME, "delete"]
        assert resource.templates["delete"].method == "DELETE"
        assert resource.templates["delete"].target == SELF_HREF

    @pytest.mark.asyncio
    async def test_unaddressable_extra_template_is_rejected(self, template_factory, value_factory, link_factory):
        factory = FormFactory(template_factory, value_factory, link_factory, [AddUnaddressableTemplate()])

        with pytest.raises(FormConfigurationError, match="'broken'"):
            await factory.create_resource_for_endpoint(None, "POST", dto_type=PersonDto)

    @pytest.mark.asyncio
    async def test_missing_default_template_is_rejected(self, template_factory, value_factory, link_factory):
        factory = FormFactory(template_factory, value_factory, link_factory, [ReplaceDefault()])

        with pytest.raises(FormConfigurationError, match="no 'default' template"):
            await factory.create_resource_for_endpoint(None, "POST", dto_type=PersonDto)

    @pytest.mark.asyncio
    async def test_failing_customization_is_wrapped(self, template_factory, value_factory, link_factory):
        factory = FormFactory(template_factory, value_factory, link_factory, [FailingCustomization()])

        with pytest.raises(FormConfigurationError) as exc_info:
            await factory.create_resource_for_endpoint(None, "POST", action="people", dto_type=PersonDto)

        assert exc_info.value.dto_type is PersonDto
        assert isinstance(exc_info.value.__cause__, RuntimeError)
