from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class TierInfo(BaseModel):
    name: str
    label: str
    price: str
    highlighted: bool = False
    features: list[str] = Field(default_factory=list)

class TiersRules(BaseModel):
    free: TierInfo
    tier1: TierInfo
    tier2: TierInfo

class PaymentsRules(BaseModel):
    allow_duplicate_pending: bool = False
    transaction_id_max_length: int = 128
    rejection_reason_max_length: int = 500
    notes_max_length: int = 1000

class ContentRules(BaseModel):
    title_max_length: int = 200
    kinds: list[str] = Field(default_factory=lambda: ["course", "tool", "blog"])

class UploadsRules(BaseModel):
    max_upload_bytes: int
    allowlist_mime_types: list[str]
    buckets: list[str]

class StoreRules(BaseModel):
    timeout_seconds: float = 5.0

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    tiers: TiersRules
    payments: PaymentsRules = Field(default_factory=PaymentsRules)
    content: ContentRules = Field(default_factory=ContentRules)
    uploads: UploadsRules
    store: StoreRules = Field(default_factory=StoreRules)
    ops: OpsRules = Field(default_factory=OpsRules)
