from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Request body base: accepts both snake_case and camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineItem(APIModel):
    item_id: int | None = None
    name: str
    description: str | None = None
    quantity: float = 1
    unit_price: float = 0
    discount: float = 0
