"""Shared Pydantic configuration for camelCase JSON payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model whose fields are read and written under camelCase aliases.

    Unknown fields are kept: records are stored as the client sent them,
    so extra descriptive attributes survive a round trip.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_record(self) -> dict:
        """Return the fields the caller actually sent, keyed by alias."""
        return self.model_dump(by_alias=True, exclude_unset=True)
