# =======================================================================================
# app/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field
from .enums import SyncStatus

# ========== Wild Apricot contact ==========

class FieldValue(BaseModel):
    """One entry of a contact's FieldValues list. Value is untyped upstream."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    field_name: str = Field(..., alias="FieldName")
    value: Any = Field(None, alias="Value")

class MembershipLevel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Any = Field(None, alias="Id")

class Contact(BaseModel):
    """Contact record as returned by the Wild Apricot /contacts endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., alias="Id")
    membership_level: Optional[MembershipLevel] = Field(None, alias="MembershipLevel")
    field_values: List[FieldValue] = Field(default_factory=list, alias="FieldValues")

# ========== Cache payloads (reader firmware contract) ==========

class DoorCacheEntry(BaseModel):
    tag_id: int
    membership_level: int

class MachineCacheEntry(BaseModel):
    tag_id: int
    trainings: List[str]

# ========== Sync ==========

class ContactFailure(BaseModel):
    contact_id: Optional[int] = None
    message: str

class SyncStatusResponse(BaseModel):
    """Outcome of the most recent sync cycle."""
    status: SyncStatus
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    contacts_seen: int = 0
    members_upserted: int = 0
    contacts_skipped: int = 0
    cache_version: Optional[int] = None
    error_message: Optional[str] = None
    extraction_errors: List[ContactFailure] = Field(default_factory=list)
    last_success_at: Optional[datetime] = None

# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
