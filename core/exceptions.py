"""Errors raised while generating HAL-Forms templates and resources."""


class HalFormsError(Exception):
    """Base class for all HAL-Forms errors."""


class FormConfigurationError(HalFormsError):
    """A setup defect: unsupported type shape, failing hook, unaddressable form.

    Carries the type, property and hook involved so callers can tell which
    piece of configuration to fix. Never recovered inside the library.
    """

    def __init__(
        self,
        message: str,
        dto_type: type | None = None,
        property_name: str | None = None,
        hook: object | None = None,
    ):
        super().__init__(message)
        self.dto_type = dto_type
        self.property_name = property_name
        self.hook = hook
