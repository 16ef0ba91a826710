from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.constants import MEDIA_TYPE_HAL_FORMS, MEDIA_TYPE_HAL_JSON


class HalResponse(JSONResponse):
    """JSON response rendering pydantic models by alias, without unset values."""
    media_type = MEDIA_TYPE_HAL_JSON

    def render(self, content: Any) -> bytes:
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", by_alias=True, exclude_none=True)
        return super().render(jsonable_encoder(content))


class HalFormsResponse(HalResponse):
    media_type = MEDIA_TYPE_HAL_FORMS
