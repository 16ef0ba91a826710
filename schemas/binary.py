"""File content carried inside forms, as a data URI or a plain URI."""

import base64
import binascii

from pydantic import BaseModel, computed_field

DATA_URI_PREFIX = "data:"
BASE64_MARKER = ";base64"


class HalFile(BaseModel):
    uri: str
    name: str | None = None

    @classmethod
    def from_content(cls, content: bytes, mime_type: str, name: str | None = None) -> "HalFile":
        payload = base64.b64encode(content).decode("ascii")
        return cls(uri=f"{DATA_URI_PREFIX}{mime_type}{BASE64_MARKER},{payload}", name=name)

    @property
    def has_data_uri(self) -> bool:
        return self.uri.startswith(DATA_URI_PREFIX) and "," in self.uri

    @computed_field
    @property
    def mime_type(self) -> str | None:
        if not self.has_data_uri:
            return None
        header = self.uri[len(DATA_URI_PREFIX):self.uri.index(",")]
        mime_type = header.split(";")[0]
        return mime_type or "text/plain"

    @property
    def content(self) -> bytes | None:
        """Decoded data URI payload, ``None`` for plain URIs."""
        if not self.has_data_uri:
            return None
        header, _, payload = self.uri.partition(",")
        if header.endswith(BASE64_MARKER):
            try:
                return base64.b64decode(payload, validate=True)
            except binascii.Error as exc:
                raise ValueError("Data URI payload is not valid base64") from exc
        return payload.encode("utf-8")


class HalImage(HalFile):
    """Image content; rendered as an ``image`` property."""
