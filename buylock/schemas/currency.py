# buylock/schemas/currency.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class CurrencyRead(SQLModel):
    """
    One supported display currency.
    """

    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    symbol: str
    flag: str


class CurrencySelect(SQLModel):
    """
    Payload for choosing the display currency.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=3, max_length=3)


class CurrencyState(SQLModel):
    """
    The client's currency state: selection, rate table and loading flag.
    """

    current: CurrencyRead
    rates: dict[str, float]
    is_loading: bool


class ConversionRead(SQLModel):
    """
    Result of converting an amount into the client's currency.
    `converted` is None when the amount was not numeric.
    """

    amount: str
    from_currency: str
    currency: str
    converted: float | None
    formatted: str
