"""Transaction and payment-partner models."""

from pydantic import Field

from n26_cli.api.models.base import N26Model


class Transaction(N26Model):
    """Booked or pending transaction."""

    id: str
    amount: float
    currency_code: str | None = Field(default=None, alias="currencyCode")
    type: str | None = None
    partner_name: str | None = Field(default=None, alias="partnerName")
    partner_iban: str | None = Field(default=None, alias="partnerIban")
    merchant_name: str | None = Field(default=None, alias="merchantName")
    reference_text: str | None = Field(default=None, alias="referenceText")
    category: str | None = None
    visible_ts: int | None = Field(default=None, alias="visibleTS")
    pending: bool = False

    @property
    def counterparty(self) -> str:
        return self.partner_name or self.merchant_name or ""


class Recipient(N26Model):
    """Previously used transfer recipient."""

    iban: str | None = None
    bic: str | None = None
    name: str | None = None


class Contact(N26Model):
    """Saved contact."""

    id: str | None = None
    name: str | None = None
    subtitle: str | None = None


class Category(N26Model):
    """Transaction category."""

    id: str
    name: str | None = None
