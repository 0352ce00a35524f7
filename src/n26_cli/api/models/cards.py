"""Card models."""

from pydantic import Field

from n26_cli.api.models.base import N26Model


class Card(N26Model):
    """Debit or credit card."""

    id: str
    masked_pan: str | None = Field(default=None, alias="maskedPan")
    card_type: str | None = Field(default=None, alias="cardType")
    card_product_type: str | None = Field(default=None, alias="cardProductType")
    status: str | None = None
    expiration_date: int | None = Field(default=None, alias="expirationDate")
    username_on_card: str | None = Field(default=None, alias="usernameOnCard")

    @property
    def is_active(self) -> bool:
        return (self.status or "").upper() == "M_ACTIVE"
