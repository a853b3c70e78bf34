# app/schemas/base.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire (both accepted on input)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
