"""
Data Models
-----------
This module contains all Pydantic models used by the reconciliation core and the API.
Records coming from either system are normalized into CustomerRecord; the merge and
diff engines produce UnifiedCustomer and SyncResult respectively.

API-facing models serialize with camelCase aliases (e.g. contractStartDate, _metadata).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from unified_customer.utils.text_processing import normalize_email, blank_to_none


class SourceSystem(str, Enum):
    """Identifies which system produced a value. BOTH is only used as a field winner."""
    SYSTEM_A = "SYSTEM_A"
    SYSTEM_B = "SYSTEM_B"
    BOTH = "BOTH"


class SyncStatus(str, Enum):
    IN_SYNC = "in_sync"
    CONFLICTS_FOUND = "conflicts_found"
    SINGLE_SOURCE_ONLY = "single_source_only"


class ApiModel(BaseModel):
    """Base for models that are returned over HTTP with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerRecord(BaseModel):
    """
    One system's view of a customer.

    The email is normalized (trimmed, lower-cased) and validated at construction,
    and optional fields never hold empty strings: blank values become None.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    address: str
    phone: Optional[str] = None
    contract_start_date: Optional[str] = None
    contract_type: Optional[str] = None
    last_updated: datetime
    source: SourceSystem

    @field_validator("email", mode="before")
    @classmethod
    def normalize_identity(cls, v: Any) -> str:
        return normalize_email(v)

    @field_validator("phone", "contract_start_date", "contract_type", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Optional[str]:
        return blank_to_none(v)

    @field_validator("last_updated")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps cannot be compared with aware ones
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("source")
    @classmethod
    def concrete_source(cls, v: SourceSystem) -> SourceSystem:
        if v == SourceSystem.BOTH:
            raise ValueError("A record must come from exactly one system")
        return v


# --- Field provenance ---
class ResolvedField(ApiModel):
    """Provenance of a field whose value was chosen without a conflict."""
    source: SourceSystem
    conflict: Literal[False] = False


class ConflictedField(ApiModel):
    """Provenance of a field where both systems disagree; carries both values."""
    source: SourceSystem
    conflict: Literal[True] = True
    system_a_value: Optional[str] = None
    system_b_value: Optional[str] = None


FieldMetadata = Union[ResolvedField, ConflictedField]


class Identifiers(ApiModel):
    system_a_id: Optional[str] = None
    system_b_id: Optional[str] = None


class UnifiedCustomerMetadata(ApiModel):
    sources: List[SourceSystem]
    is_partial: bool = False
    conflicts_detected: bool = False
    fields: Dict[str, FieldMetadata] = Field(default_factory=dict)


class UnifiedCustomer(ApiModel):
    """The merged, provenance-annotated customer record."""
    email: str
    name: str
    address: str
    phone: Optional[str] = None
    contract_start_date: Optional[str] = None
    contract_type: Optional[str] = None
    identifiers: Identifiers
    metadata: UnifiedCustomerMetadata = Field(alias="_metadata")


# --- Sync / diff ---
class FieldConflict(ApiModel):
    field: str
    system_a_value: Optional[str] = None
    system_b_value: Optional[str] = None
    newer_source: SourceSystem


class SyncTimestamps(ApiModel):
    system_a: Optional[datetime] = None
    system_b: Optional[datetime] = None


class SyncResult(ApiModel):
    """Field-by-field comparison of one customer across both systems."""
    email: str
    status: SyncStatus
    present_in: Optional[SourceSystem] = None
    last_updated: SyncTimestamps
    conflicts: List[FieldConflict] = Field(default_factory=list)
    matched_fields: List[str] = Field(default_factory=list)


class HealthStatus(BaseModel):
    system_a: bool
    system_b: bool


# --- API request / response structures ---
class SyncRequest(BaseModel):
    email: str


class ErrorDetail(BaseModel):
    field: str
    constraints: Dict[str, str]


class ErrorBody(ApiModel):
    status_code: int
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ApiResponse(BaseModel):
    """Success envelope wrapping every customer endpoint's payload."""
    success: bool = True
    data: Any = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApiError(BaseModel):
    success: bool = False
    error: ErrorBody
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
