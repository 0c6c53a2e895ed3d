# buylock/schemas/cart.py
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from buylock.utils.currency import clean_currency_text


class CatalogSnapshot(BaseModel):
    """
    Denormalized copy of a product or service taken when it was added.

    Only `price` is read by the cart; legacy currency labels in `name`
    (KSh, NGN, ...) are rewritten as KES. Any other catalogue fields
    (images, vendor, category, ...) are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    name: str | None = None
    price: str | float | None = None

    @field_validator("name")
    @classmethod
    def normalize_currency_labels(cls, v: str | None) -> str | None:
        return clean_currency_text(v) if v else v


class GuestCartItemBase(SQLModel):
    """
    Fields shared by create payloads and stored lines.

    A line references either a product or a service (not validated).
    Appointment fields are only meaningful for service bookings.
    """

    product_id: str | None = None
    service_id: str | None = None
    quantity: int = Field(gt=0)

    appointment_date: str | None = None
    appointment_time: str | None = None
    appointment_duration: int | None = None
    appointment_notes: str | None = None

    product: CatalogSnapshot | None = None
    service: CatalogSnapshot | None = None


class GuestCartItemCreate(GuestCartItemBase):
    """
    Payload for adding to the guest cart.
    """

    pass


class GuestCartItem(GuestCartItemBase):
    """
    Stored cart line. `quantity` is only ever 0 transiently, zero lines
    are pruned before the cart is persisted.
    """

    id: str
    quantity: int = Field(ge=0)


class GuestCartItemUpdate(SQLModel):
    """
    Payload for updating a line's quantity. Values <= 0 remove the line.
    """

    quantity: int


class GuestCartSummary(SQLModel):
    """
    Full guest cart response with totals.

    `total_price` is in KES; `formatted_total` is rendered in the
    client's selected currency.
    """

    items: list[GuestCartItem]
    total_quantity: int
    total_price: float
    currency: str
    formatted_total: str
    has_only_services: bool
