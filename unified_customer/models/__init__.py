"""
Data Models Module
Contains Pydantic models for customer records, merge results and API responses.
"""

from .data_models import (
    SourceSystem,
    SyncStatus,
    CustomerRecord,
    ResolvedField,
    ConflictedField,
    Identifiers,
    UnifiedCustomerMetadata,
    UnifiedCustomer,
    FieldConflict,
    SyncTimestamps,
    SyncResult,
    HealthStatus,
)
