"""Account-related models."""

from pydantic import Field

from n26_cli.api.models.base import N26Model


class Me(N26Model):
    """The logged-in user."""

    id: str
    email: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    mobile_phone_number: str | None = Field(default=None, alias="mobilePhoneNumber")

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else "Unknown"


class Account(N26Model):
    """Main bank account with balances."""

    id: str
    iban: str | None = None
    bic: str | None = None
    bank_name: str | None = Field(default=None, alias="bankName")
    available_balance: float | None = Field(default=None, alias="availableBalance")
    usable_balance: float | None = Field(default=None, alias="usableBalance")
    bank_balance: float | None = Field(default=None, alias="bankBalance")
    currency: str | None = None


class Space(N26Model):
    """Sub-account ("Space")."""

    id: str
    name: str | None = None
    balance: dict | None = None
    is_primary: bool = Field(default=False, alias="isPrimary")


class Address(N26Model):
    """Postal address attached to the account."""

    id: str
    street_name: str | None = Field(default=None, alias="streetName")
    house_number_block: str | None = Field(default=None, alias="houseNumberBlock")
    zip_code: str | None = Field(default=None, alias="zipCode")
    city_name: str | None = Field(default=None, alias="cityName")
    country_name: str | None = Field(default=None, alias="countryName")
    type: str | None = None
