"""Customer and staff identity entities."""

from pydantic import BaseModel, ConfigDict, field_validator


class CustomerInfo(BaseModel):
    """Optional customer details attached to a sale."""

    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    @field_validator("name", "phone", "email", "address", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def is_empty(self) -> bool:
        return not any((self.name, self.phone, self.email, self.address))


class StaffIdentity(BaseModel):
    """The cashier recorded on every sale."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
