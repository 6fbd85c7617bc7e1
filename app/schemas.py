# Pydantic models (request/response DTOs) used by the API layer.
# JSON uses camelCase field names and "_id" for document ids; Python code stays snake_case.
from pydantic import BaseModel, Field, ConfigDict, field_validator, EmailStr
from pydantic.alias_generators import to_camel
from typing import Literal, List, Optional, Any, Dict
from datetime import datetime


# Shared configuration: camelCase aliases, accept either spelling on input, read from ORM rows
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _normalize_email(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip().lower()
    return v


def _strip(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
    return v


# User roles within the system
Role = Literal["user", "agent", "admin", "fraud"]
PropertyStatus = Literal["pending", "verified", "rejected"]
OfferStatus = Literal["pending", "accepted", "rejected", "bought"]


# Document-store style acknowledgements returned by write endpoints
class InsertResult(CamelModel):
    acknowledged: bool = True
    inserted_id: str


class UpdateResult(CamelModel):
    acknowledged: bool = True
    matched_count: int
    modified_count: int


class DeleteResult(CamelModel):
    acknowledged: bool = True
    deleted_count: int


class MessageResponse(CamelModel):
    message: str


# Authentication and users

# Request payload for registering a user
class UserCreate(CamelModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, max_length=1024)
    password: Optional[str] = Field(default=None, min_length=8)

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


# API response for a user record (never includes the password hash)
class UserRead(CamelModel):
    id: str = Field(alias="_id")
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None


# Request payload for minting a token
class TokenRequest(CamelModel):
    email: EmailStr
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class TokenResponse(CamelModel):
    token: str


# Optional body of PATCH /users/fraud/{id}; email must match the user being flagged
class FraudRequest(CamelModel):
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class FraudResult(UpdateResult):
    properties_rejected: int


# Properties

# Attributes an agent controls on a listing (shared by create/update)
class PropertyBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    price_range: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    image: Optional[str] = Field(default=None, max_length=1024)

    # Trim surrounding whitespace before validation
    @field_validator("title", "location", "price_range", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip(v)


# Payload for creating a new property; agent email always comes from the caller
class PropertyCreate(PropertyBase):
    agent_name: Optional[str] = Field(default=None, max_length=255)
    agent_image: Optional[str] = Field(default=None, max_length=1024)


class PropertyUpdate(PropertyBase):
    pass


# Response shape when reading a property from the API
class PropertyRead(PropertyBase):
    id: str = Field(alias="_id")
    price_min: float
    price_max: float
    agent_email: str
    agent_name: Optional[str] = None
    agent_image: Optional[str] = None
    status: PropertyStatus
    advertised: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated listing response
class PropertyPage(CamelModel):
    items: List[PropertyRead]
    total: int
    page: int
    limit: int


# Wishlist

class WishlistCreate(CamelModel):
    property_id: str
    user_email: Optional[EmailStr] = None

    @field_validator("user_email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


# Offers

class OfferCreate(CamelModel):
    property_id: str
    offered_amount: float = Field(..., gt=0)
    buyer_name: Optional[str] = Field(default=None, max_length=255)


class OfferRead(CamelModel):
    id: str = Field(alias="_id")
    property_id: str
    property_title: Optional[str] = None
    property_location: Optional[str] = None
    property_image: Optional[str] = None
    agent_email: str
    agent_name: Optional[str] = None
    buyer_email: str
    buyer_name: Optional[str] = None
    offered_amount: float
    status: OfferStatus
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OfferBought(CamelModel):
    transaction_id: str = Field(..., min_length=1, max_length=255)


class OfferAcceptResponse(CamelModel):
    message: str
    rejected_count: int


# Reviews

class ReviewCreate(CamelModel):
    property_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)
    reviewer_name: Optional[str] = Field(default=None, max_length=255)
    reviewer_image: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("comment", mode="before")
    @classmethod
    def strip_comment(cls, v: str) -> str:
        return _strip(v)


class ReviewRead(CamelModel):
    id: str = Field(alias="_id")
    property_id: str
    property_title: Optional[str] = None
    agent_name: Optional[str] = None
    reviewer_email: str
    user_email: str
    reviewer_name: Optional[str] = None
    reviewer_image: Optional[str] = None
    rating: int
    comment: str
    created_at: Optional[datetime] = None


# Reports

class ReportRead(CamelModel):
    id: str = Field(alias="_id")
    property_id: Optional[str] = None
    reporter_email: str
    reason: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


# Payments

class PaymentIntentRequest(CamelModel):
    amount: float = Field(..., gt=0)


class PaymentIntentResponse(CamelModel):
    success: bool
    transaction_id: str
    amount: float
