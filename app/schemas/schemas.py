from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseSchema(CamelModel, Generic[T]):
    success: bool = True
    data: T


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class EntityUpdateSchema(CamelModel):
    """Body shared by the generic PATCH endpoints: an id plus partial fields."""

    updates: dict[str, Any] | None = None


class SuspensionResponse(CamelModel):
    success: bool = True
    message: str
    data: dict[str, Any]
