"""
Base DTO

Response payloads are serialized in camelCase to match the web panels.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Pydantic model that accepts snake_case and emits camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
