from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from ..domain.models import INT64_MAX, INT64_MIN


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountNames(CamelModel):
    first_name: str = Field(min_length=1, max_length=55)
    last_name: str = Field(min_length=1, max_length=55)


class AccountCreate(AccountNames):
    pass


class AccountUpdate(AccountNames):
    pass


class AccountRead(CamelModel):
    # Built straight from the domain dataclass returned by the store.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
    id: int
    first_name: str
    last_name: str
    number: int
    balance: int
    created_at: datetime

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.isoformat().replace("+00:00", "Z")


class AccountDeleted(BaseModel):
    deleted: int


class TransferCreate(CamelModel):
    to_account: int = Field(
        ge=INT64_MIN,
        le=INT64_MAX,
        strict=True,
        description="Destination account number",
    )
    amount: int = Field(ge=1, le=INT64_MAX, strict=True, description="Amount in minor units (e.g. cents)")


class TransferRead(CamelModel):
    from_account: int
    to_account: int
    amount: int
    balance: int = Field(description="Balance of the debited account after the transfer")
