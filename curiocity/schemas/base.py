"""Shared schema base."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in the primary store.

    Either spelling is accepted on input; FastAPI serialises responses by alias.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_item(self) -> dict:
        """Serialise for storage: camelCase keys, unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)
