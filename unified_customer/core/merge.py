"""
Core Merge and Diff Logic
-------------------------
This module contains the pure reconciliation logic for customer records held in
System A (legacy store, owns contract data) and System B (external service, owns
contact data). Nothing here performs I/O.

Field priority rules when both systems hold the customer:
    - name: the most recently updated system wins; conflict if the names differ
    - phone: System B wins, System A as fallback; never a conflict
    - address: System B always wins; conflict if both exist and differ
    - contract_start_date, contract_type: System A wins, System B as fallback
    - email: the join key, always equal on both sides

Timestamp ties go to System A, both for the merged name and for the newer source
reported by a diff.
"""

import logging
from typing import Dict, List, Optional, Tuple

from unified_customer.core.exceptions import InvariantViolation
from unified_customer.models.data_models import (
    ConflictedField,
    CustomerRecord,
    FieldConflict,
    FieldMetadata,
    Identifiers,
    ResolvedField,
    SourceSystem,
    SyncResult,
    SyncStatus,
    SyncTimestamps,
    UnifiedCustomer,
    UnifiedCustomerMetadata,
)

logger = logging.getLogger(__name__)

# Comparable fields as (API name, record attribute), in report order
COMPARABLE_FIELDS: List[Tuple[str, str]] = [
    ("name", "name"),
    ("address", "address"),
    ("phone", "phone"),
    ("contractStartDate", "contract_start_date"),
    ("contractType", "contract_type"),
]
CONTRACT_FIELDS = COMPARABLE_FIELDS[3:]


def merge_customers(
    system_a: Optional[CustomerRecord],
    system_b: Optional[CustomerRecord]
) -> UnifiedCustomer:
    """
    Merge up to two views of the same customer into one unified record.

    The result is never marked partial here: only the caller knows whether a
    missing side was actually looked up.

    Args:
        system_a: The customer as seen by System A, or None
        system_b: The customer as seen by System B, or None

    Returns:
        UnifiedCustomer: The merged record with per-field provenance

    Raises:
        InvariantViolation: If neither record is given
    """
    if system_a is None and system_b is None:
        raise InvariantViolation("Cannot merge: no customer data from either system")

    if system_b is None:
        return _single_source_result(system_a, SourceSystem.SYSTEM_A)
    if system_a is None:
        return _single_source_result(system_b, SourceSystem.SYSTEM_B)

    return _merge_both(system_a, system_b)


def diff_customers(system_a: CustomerRecord, system_b: CustomerRecord) -> SyncResult:
    """
    Compare both views of a customer field by field.

    A field that is absent on both sides is neither matched nor conflicting.
    Every conflict names the system holding the newer data.

    Args:
        system_a: The customer as seen by System A
        system_b: The customer as seen by System B

    Returns:
        SyncResult: Status, conflicts and matched fields for the customer
    """
    newer_source = (
        SourceSystem.SYSTEM_A
        if system_a.last_updated >= system_b.last_updated
        else SourceSystem.SYSTEM_B
    )

    conflicts: List[FieldConflict] = []
    matched_fields: List[str] = ["email"]

    for field_name, attr in COMPARABLE_FIELDS:
        a_value = getattr(system_a, attr)
        b_value = getattr(system_b, attr)

        if a_value is None and b_value is None:
            continue

        if a_value == b_value:
            matched_fields.append(field_name)
        else:
            conflicts.append(FieldConflict(
                field=field_name,
                system_a_value=a_value,
                system_b_value=b_value,
                newer_source=newer_source
            ))

    status = SyncStatus.CONFLICTS_FOUND if conflicts else SyncStatus.IN_SYNC
    logger.debug(f"Diff for {system_a.email}: {status.value}, {len(conflicts)} conflict(s)")

    return SyncResult(
        email=system_a.email,
        status=status,
        last_updated=SyncTimestamps(
            system_a=system_a.last_updated,
            system_b=system_b.last_updated
        ),
        conflicts=conflicts,
        matched_fields=matched_fields
    )


def _merge_both(system_a: CustomerRecord, system_b: CustomerRecord) -> UnifiedCustomer:
    fields: Dict[str, FieldMetadata] = {}

    # Name: newest system wins, A on a tie
    b_is_newer = system_b.last_updated > system_a.last_updated
    name_source = SourceSystem.SYSTEM_B if b_is_newer else SourceSystem.SYSTEM_A
    merged_name = system_b.name if b_is_newer else system_a.name
    if system_a.name != system_b.name:
        fields["name"] = ConflictedField(
            source=name_source,
            system_a_value=system_a.name,
            system_b_value=system_b.name
        )
    else:
        fields["name"] = ResolvedField(source=SourceSystem.BOTH)

    # Phone: System B is authoritative for contact data
    merged_phone = system_b.phone or system_a.phone
    if system_b.phone:
        fields["phone"] = ResolvedField(source=SourceSystem.SYSTEM_B)
    elif system_a.phone:
        fields["phone"] = ResolvedField(source=SourceSystem.SYSTEM_A)

    # Address: System B always wins
    address_conflict = (
        system_a.address is not None
        and system_b.address is not None
        and system_a.address != system_b.address
    )
    if address_conflict:
        fields["address"] = ConflictedField(
            source=SourceSystem.SYSTEM_B,
            system_a_value=system_a.address,
            system_b_value=system_b.address
        )
    else:
        fields["address"] = ResolvedField(source=SourceSystem.SYSTEM_B)

    # Contract data: System A is authoritative
    merged_contract: Dict[str, Optional[str]] = {}
    for field_name, attr in CONTRACT_FIELDS:
        a_value = getattr(system_a, attr)
        b_value = getattr(system_b, attr)
        merged_contract[attr] = a_value or b_value
        if a_value:
            fields[field_name] = ResolvedField(source=SourceSystem.SYSTEM_A)
        elif b_value:
            fields[field_name] = ResolvedField(source=SourceSystem.SYSTEM_B)

    conflicts_detected = any(meta.conflict for meta in fields.values())
    if conflicts_detected:
        conflicting = [name for name, meta in fields.items() if meta.conflict]
        logger.info(f"Conflicts detected for {system_a.email}: {', '.join(conflicting)}")

    return UnifiedCustomer(
        email=system_a.email,
        name=merged_name,
        address=system_b.address,
        phone=merged_phone,
        contract_start_date=merged_contract["contract_start_date"],
        contract_type=merged_contract["contract_type"],
        identifiers=Identifiers(
            system_a_id=system_a.id,
            system_b_id=system_b.id
        ),
        metadata=UnifiedCustomerMetadata(
            sources=[SourceSystem.SYSTEM_A, SourceSystem.SYSTEM_B],
            is_partial=False,
            conflicts_detected=conflicts_detected,
            fields=fields
        )
    )


def _single_source_result(customer: CustomerRecord, source: SourceSystem) -> UnifiedCustomer:
    fields: Dict[str, FieldMetadata] = {"name": ResolvedField(source=source)}
    for field_name, attr in COMPARABLE_FIELDS[1:]:
        if getattr(customer, attr):
            fields[field_name] = ResolvedField(source=source)

    return UnifiedCustomer(
        email=customer.email,
        name=customer.name,
        address=customer.address,
        phone=customer.phone,
        contract_start_date=customer.contract_start_date,
        contract_type=customer.contract_type,
        identifiers=Identifiers(
            system_a_id=customer.id if source == SourceSystem.SYSTEM_A else None,
            system_b_id=customer.id if source == SourceSystem.SYSTEM_B else None
        ),
        metadata=UnifiedCustomerMetadata(
            sources=[source],
            is_partial=False,
            conflicts_detected=False,
            fields=fields
        )
    )
