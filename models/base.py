"""Base model with camelCase serialization for stored documents and API output."""

import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every document and payload model; dumps camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def new_id() -> str:
    """Generate a document primary key."""
    return uuid.uuid4().hex
