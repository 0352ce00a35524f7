"""Base model configuration for all N26 models."""

from pydantic import BaseModel, ConfigDict


class N26Model(BaseModel):
    """Base model with common configuration.

    All N26 API models should inherit from this class to get:
    - populate_by_name: Allow both alias and field name in input
    - extra="allow": Keep fields we don't model, the API adds them freely
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )
