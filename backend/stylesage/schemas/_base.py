"""Shared Pydantic config for camelCase JSON payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase, also accepts snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
