"""Request bodies for the product configuration endpoints."""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.services.variants import SelectionState


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OptionAction(_Body):
    type: Literal["option"]
    path: list[str] = Field(min_length=1, max_length=3)
    value: str


class ClearAction(_Body):
    type: Literal["clear"]
    path: list[str] = Field(min_length=1, max_length=3)


class AddonAction(_Body):
    type: Literal["addon"]
    addon_name: str
    option_label: str
    quantity: int = Field(ge=0)


SelectionAction = Annotated[
    Union[OptionAction, ClearAction, AddonAction], Field(discriminator="type")
]


class QuoteRequest(_Body):
    selection: SelectionState = Field(default_factory=SelectionState)


class SelectionRequest(QuoteRequest):
    action: SelectionAction


class CartLineRequest(QuoteRequest):
    quantity: int = Field(1, ge=1)
