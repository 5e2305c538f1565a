"""
Base model for API payloads.

The front-end speaks camelCase (roundNumber, playersWithoutScores, ...);
Python code keeps snake_case. Either spelling is accepted on input,
responses go out in camelCase.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
