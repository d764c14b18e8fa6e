"""
Request schemas.

These models are the validation layer for everything that enters the API:
FastAPI runs them on request bodies, and the listing service re-runs
``ListingCreate`` on merged documents during updates.  All wire keys are
camelCase (``fuelType``, ``bodyType``, ``firstName``) via ``to_camel``.
"""
import re
from datetime import datetime
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.config import settings
from app.services.listing_fields import capitalize_name

FuelType = Literal["petrol", "diesel", "electric", "hybrid", "cng", "lpg"]
Transmission = Literal["manual", "automatic", "cvt"]
BodyType = Literal["sedan", "hatchback", "suv", "coupe", "convertible", "wagon", "pickup", "van"]
ListingStatus = Literal["available", "sold", "reserved"]

PHONE_RE = re.compile(r"^[+]?[\d\s\-\(\)]{10,15}$")

MIN_YEAR = 1900
MAX_PRICE = 10_000_000
MAX_MILEAGE = 1_000_000


def max_listing_year() -> int:
    return datetime.now().year + 1


def _check_phone(value: str | None) -> str | None:
    if value is None:
        return None
    if not PHONE_RE.match(value):
        raise ValueError("Please provide a valid phone number")
    return value


PhoneNumber = Annotated[str, AfterValidator(_check_phone)]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        str_strip_whitespace=True,
        extra="ignore",
    )


# --- Listing ---

class ListingImage(CamelModel):
    url: HttpUrl
    alt: str | None = Field(None, max_length=200)


class Location(CamelModel):
    city: str = Field(min_length=1, max_length=50)
    state: str = Field(min_length=1, max_length=50)
    country: str = Field(
        default_factory=lambda: settings.DEFAULT_COUNTRY, min_length=1, max_length=50
    )


class Seller(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    phone: PhoneNumber
    email: EmailStr | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _normalise_email(cls, value):
        value = _blank_to_none(value)
        if isinstance(value, str):
            return value.strip().lower()
        return value


FeatureText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


class ListingCreate(CamelModel):
    make: str = Field(min_length=1, max_length=50)
    model: str = Field(min_length=1, max_length=50)
    year: int
    price: float = Field(gt=0, le=MAX_PRICE)
    mileage: int = Field(ge=0, le=MAX_MILEAGE)
    fuel_type: FuelType
    transmission: Transmission
    body_type: BodyType
    color: str = Field(min_length=1, max_length=30)
    description: str | None = Field(None, max_length=1000)
    features: list[FeatureText] = Field(default_factory=list, max_length=20)
    images: list[ListingImage] = Field(default_factory=list, max_length=10)
    location: Location
    seller: Seller
    status: ListingStatus = "available"

    @field_validator("make", "model")
    @classmethod
    def _capitalize(cls, value: str) -> str:
        return capitalize_name(value)

    @field_validator("fuel_type", "transmission", "body_type", "status", mode="before")
    @classmethod
    def _lowercase_enum(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("year")
    @classmethod
    def _year_in_range(cls, value: int) -> int:
        if value < MIN_YEAR:
            raise ValueError(f"Year must be after {MIN_YEAR}")
        if value > max_listing_year():
            raise ValueError("Year cannot be in the future")
        return value


# --- User ---

Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$"),
]
Password = Annotated[str, StringConstraints(strip_whitespace=False, min_length=6, max_length=128)]
AnyPassword = Annotated[str, StringConstraints(strip_whitespace=False, min_length=1)]


class Profile(CamelModel):
    first_name: str | None = Field(None, max_length=50)
    last_name: str | None = Field(None, max_length=50)
    phone: PhoneNumber | None = None

    @field_validator("first_name", "last_name", "phone", mode="before")
    @classmethod
    def _empty_is_none(cls, value):
        return _blank_to_none(value)


class _EmailModel(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class UserRegister(_EmailModel):
    username: Username
    password: Password
    profile: Profile | None = None


class UserLogin(_EmailModel):
    # Only presence is checked here; strength rules apply at registration.
    password: AnyPassword


class ProfileUpdate(CamelModel):
    profile: Profile


class PasswordChange(CamelModel):
    current_password: AnyPassword
    new_password: Password


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)
