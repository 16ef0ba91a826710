from typing import Generator
import pytest
from unittest.mock import Mock
from faker import Faker

from schemas.link import Link
from services.form_factory import FormFactory
from services.form_template_factory import FormTemplateFactory
from services.form_value_factory import FormValueFactory
from services.link_factory import LinkFactory
from services.options_builder import OptionsBuilder
from services.template_cache import TemplateCache, reset_template_cache

fake = Faker()

SELF_HREF = "http://testserver/customers/1"


@pytest.fixture(autouse=True)
def shared_template_cache() -> Generator[None, None, None]:
    """Start every test with an empty process wide template cache."""
    reset_template_cache()
    yield
    reset_template_cache()


@pytest.fixture
def template_cache() -> TemplateCache:
    return TemplateCache(maxsize=32)


@pytest.fixture
def options_builder() -> OptionsBuilder:
    return OptionsBuilder(camel_case_prompts=False, camel_case_names=True)


@pytest.fixture
def template_factory(template_cache: TemplateCache, options_builder: OptionsBuilder) -> FormTemplateFactory:
    return FormTemplateFactory(
        options_builder=options_builder,
        cache=template_cache,
        camel_case_names=True,
    )


@pytest.fixture
def value_factory() -> FormValueFactory:
    return FormValueFactory()


@pytest.fixture
def link_factory() -> Mock:
    """Link factory resolving every endpoint to the same customer URL."""
    factory = Mock(spec=LinkFactory)
    factory.get_self_href.return_value = SELF_HREF
    factory.create.return_value = Link(href=SELF_HREF)
    return factory


@pytest.fixture
def form_factory(
    template_factory: FormTemplateFactory,
    value_factory: FormValueFactory,
    link_factory: Mock
) -> FormFactory:
    return FormFactory(template_factory, value_factory, link_factory)


@pytest.fixture
def person_name() -> str:
    return fake.name()
