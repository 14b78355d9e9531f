from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from tholvi.domain.entities import RoleType, Tier, UserAccount

ContentKindParam = Literal["course", "tool", "blog"]
SectionParentParam = Literal["course", "tool"]


# --- Accounts ---
class SignupRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8, max_length=128)
    display_name: str = Field(min_length=1, max_length=100)


class Token(BaseModel):
    access_token: str
    token_type: str


class UserResponse(BaseModel):
    id: UUID
    email: str
    display_name: str
    tier: Tier
    role: RoleType
    telegram_username: str | None = None
    telegram_access: bool
    banned: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: UserAccount) -> "UserResponse":
        return cls.model_validate(user.model_dump(exclude={"password_hash"}))


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = None
    telegram_username: str | None = None


# --- Admin: members ---
class TierUpdateRequest(BaseModel):
    tier: str


class BannedUpdateRequest(BaseModel):
    banned: bool


class TelegramAccessRequest(BaseModel):
    granted: bool


# --- Content ---
class ContentFields(BaseModel):
    """Editable content fields. Unset fields are left unchanged on update."""

    title: str | None = None
    description: str | None = None
    tier_required: Tier | None = None
    published: bool | None = None
    thumbnail_url: str | None = None
    # Blog only
    preview: str | None = None
    content: str | None = None
    author: str | None = None
    read_time: int | None = Field(default=None, ge=0)


class ContentCreateRequest(ContentFields):
    kind: ContentKindParam
    title: str


class SectionCreateRequest(BaseModel):
    title: str
    content: str = ""
    video_url: str | None = None
    order_index: int | None = Field(default=None, ge=0)


class SectionUpdateRequest(BaseModel):
    title: str | None = None
    content: str | None = None
    video_url: str | None = None
    order_index: int | None = Field(default=None, ge=0)


# --- Payments ---
class PaymentSubmitRequest(BaseModel):
    tier_requested: str
    transaction_id: str
    screenshot_url: str | None = None
    notes: str | None = None


class PaymentRejectRequest(BaseModel):
    reason: str


class ReconcileRequest(BaseModel):
    repair: bool = False


# --- Settings ---
class SettingsUpdateRequest(BaseModel):
    binance_id: str | None = None
    binance_qr_url: str | None = None
    telegram_bot_link: str | None = None
    telegram_channel_link: str | None = None


# --- Uploads ---
class UploadResponse(BaseModel):
    url: str
