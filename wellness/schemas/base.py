"""Base schemas shared by the API modules"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and renders camelCase keys, reads ORM objects"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class SuccessResponse(CamelModel):
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str
