from datetime import UTC, datetime
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
Tier = Literal["free", "tier1", "tier2"]
PaidTier = Literal["tier1", "tier2"]
RoleType = Literal["user", "admin"]
PaymentStatus = Literal["pending", "approved", "rejected"]
ContentKind = Literal["course", "tool", "blog"]
SectionParentKind = Literal["course", "tool"]
NotificationType = Literal["info", "success", "warning", "payment"]


def utc_now() -> datetime:
    return datetime.now(UTC)


# --- Accounts ---

class UserAccount(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    display_name: str
    password_hash: str = ""
    tier: Tier = "free"
    role: RoleType = "user"
    telegram_username: str | None = None
    telegram_access: bool = False
    banned: bool = False
    # Last time the tier column was written, by an admin or by a payment approval
    tier_changed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# --- Content ---

class Section(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    parent_kind: SectionParentKind
    parent_id: UUID
    title: str
    content: str = ""
    video_url: str | None = None
    order_index: int = 0
    created_at: datetime = Field(default_factory=utc_now)


class _ContentBase(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str = ""
    tier_required: Tier = "free"
    published: bool = False
    thumbnail_url: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Course(_ContentBase):
    kind: Literal["course"] = "course"
    section_count: int = Field(default=0, ge=0)
    # Populated on detail reads only
    sections: list[Section] = Field(default_factory=list)


class Tool(_ContentBase):
    kind: Literal["tool"] = "tool"
    section_count: int = Field(default=0, ge=0)
    sections: list[Section] = Field(default_factory=list)


class Blog(_ContentBase):
    kind: Literal["blog"] = "blog"
    preview: str = ""
    content: str = ""
    author: str = ""
    read_time: int = 0


ContentItem = Annotated[Course | Tool | Blog, Field(discriminator="kind")]
SectionedItem = Course | Tool


# --- Payments ---

class PaymentRequest(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    tier_requested: PaidTier
    transaction_id: str
    screenshot_url: str | None = None
    notes: str | None = None
    status: PaymentStatus = "pending"
    rejection_reason: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_reviewed(self) -> bool:
        return self.reviewed_at is not None and self.reviewed_by is not None


class PaymentView(PaymentRequest):
    """PaymentRequest joined with the owner's name and email at read time."""

    user_name: str = "Unknown"
    user_email: str = "No Email"


# --- Notifications / Settings ---

class Notification(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    title: str
    message: str
    type: NotificationType = "info"
    read: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class SiteSettings(BaseModel):
    binance_id: str = ""
    binance_qr_url: str = ""
    telegram_bot_link: str = ""
    telegram_channel_link: str = ""
    updated_at: datetime = Field(default_factory=utc_now)
