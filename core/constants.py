"""Media types and well-known names of the HAL and HAL-Forms formats."""

MEDIA_TYPE_JSON = "application/json"
MEDIA_TYPE_HAL_JSON = "application/hal+json"
MEDIA_TYPE_HAL_FORMS = "application/prs.hal-forms+json"

DEFAULT_FORM_TEMPLATE_NAME = "default"
SELF_LINK_NAME = "self"

LINKS_PROPERTY_NAME = "_links"
EMBEDDED_PROPERTY_NAME = "_embedded"
TEMPLATES_PROPERTY_NAME = "_templates"
