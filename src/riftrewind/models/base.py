from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class CamelModel(BaseModel):
    """Frozen model serialized with camelCase keys, populated by either name."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)
