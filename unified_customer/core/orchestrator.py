"""
Lookup Orchestrator
-------------------
Use cases that read a customer from both systems concurrently and hand the
results to the merge and diff engines. The service holds no state besides the
two injected sources, so any number of operations can run at the same time.

A source call that raises is treated exactly like "not found". The orchestrator
cannot tell an empty source from an unreachable one, so if both sides come back
empty the customer is reported as not found.
"""

import asyncio
import logging
from typing import List, Dict, Optional, Tuple

from unified_customer.core.exceptions import CustomerNotFoundError
from unified_customer.core.merge import merge_customers, diff_customers
from unified_customer.models.data_models import (
    CustomerRecord,
    HealthStatus,
    SourceSystem,
    SyncResult,
    SyncStatus,
    SyncTimestamps,
    UnifiedCustomer,
)
from unified_customer.sources.base import CustomerSource
from unified_customer.utils.text_processing import normalize_email

logger = logging.getLogger(__name__)


def _absorb(result, source: CustomerSource, operation: str, fallback):
    """Turn an exception returned by gather() into the source's 'absent' value."""
    if isinstance(result, Exception):
        logger.warning(f"{source.name} {operation} failed, treating as absent: {str(result)}")
        return fallback
    return result


def _mark_partial(merged: UnifiedCustomer, a: Optional[CustomerRecord], b: Optional[CustomerRecord]) -> UnifiedCustomer:
    # Only the orchestrator knows both sides were actually looked up
    if (a is None) != (b is None):
        merged.metadata.is_partial = True
    return merged


class CustomerService:
    """
    Reads customers from System A and System B and reconciles them.

    Args:
        system_a: Source for the legacy store (contract data)
        system_b: Source for the external service (contact data)
    """

    def __init__(self, system_a: CustomerSource, system_b: CustomerSource):
        self.system_a = system_a
        self.system_b = system_b

    async def _find_both(self, email: str) -> Tuple[Optional[CustomerRecord], Optional[CustomerRecord]]:
        result_a, result_b = await asyncio.gather(
            self.system_a.find_by_email(email),
            self.system_b.find_by_email(email),
            return_exceptions=True
        )
        return (
            _absorb(result_a, self.system_a, "findByEmail", None),
            _absorb(result_b, self.system_b, "findByEmail", None),
        )

    async def get_by_email(self, email: str) -> UnifiedCustomer:
        """
        Return the unified record for one customer.

        Args:
            email: Customer email, normalized before any lookup

        Returns:
            UnifiedCustomer: The merged record, marked partial if only one system had it

        Raises:
            InvalidIdentity: If the email is not valid
            CustomerNotFoundError: If neither system has the customer
        """
        normalized = normalize_email(email)
        customer_a, customer_b = await self._find_both(normalized)

        if customer_a is None and customer_b is None:
            raise CustomerNotFoundError(normalized)

        return _mark_partial(merge_customers(customer_a, customer_b), customer_a, customer_b)

    async def search_by_name(self, query: str) -> List[UnifiedCustomer]:
        """
        Search both systems by name and merge the hits per email.

        A customer found by only one system's name search is looked up by email
        in the other system, so records whose names are spelled differently in
        the two systems are still merged.

        Args:
            query: Partial name, matched case-insensitively by each system

        Returns:
            List[UnifiedCustomer]: One merged record per distinct email
        """
        result_a, result_b = await asyncio.gather(
            self.system_a.search_by_name(query),
            self.system_b.search_by_name(query),
            return_exceptions=True
        )
        customers_a = _absorb(result_a, self.system_a, "search", [])
        customers_b = _absorb(result_b, self.system_b, "search", [])

        map_a: Dict[str, CustomerRecord] = {c.email: c for c in customers_a}
        map_b: Dict[str, CustomerRecord] = {c.email: c for c in customers_b}

        # dict keeps first-seen order: System A hits first, then System B
        all_emails = list(dict.fromkeys([*map_a.keys(), *map_b.keys()]))

        # Cross-reference: complete one-sided hits with a lookup by email
        lookups = []
        for email in all_emails:
            if email not in map_a:
                lookups.append((self.system_a, map_a, email))
            elif email not in map_b:
                lookups.append((self.system_b, map_b, email))

        if lookups:
            logger.info(f"Cross-referencing {len(lookups)} single-system search hit(s) for \"{query}\"")
            results = await asyncio.gather(
                *(source.find_by_email(email) for source, _, email in lookups),
                return_exceptions=True
            )
            for (source, target, email), result in zip(lookups, results):
                found = _absorb(result, source, "findByEmail", None)
                if found is not None:
                    target[email] = found

        merged_results = []
        for email in all_emails:
            a = map_a.get(email)
            b = map_b.get(email)
            merged_results.append(_mark_partial(merge_customers(a, b), a, b))

        logger.info(f"Search for \"{query}\" returned {len(merged_results)} unified customer(s)")
        return merged_results

    async def sync(self, email: str) -> SyncResult:
        """
        Compare a customer across both systems.

        Args:
            email: Customer email, normalized before any lookup

        Returns:
            SyncResult: in_sync / conflicts_found, or single_source_only if one system lacks the customer

        Raises:
            InvalidIdentity: If the email is not valid
            CustomerNotFoundError: If neither system has the customer
        """
        normalized = normalize_email(email)
        customer_a, customer_b = await self._find_both(normalized)

        if customer_a is None and customer_b is None:
            raise CustomerNotFoundError(normalized)

        if customer_b is None:
            return SyncResult(
                email=normalized,
                status=SyncStatus.SINGLE_SOURCE_ONLY,
                present_in=SourceSystem.SYSTEM_A,
                last_updated=SyncTimestamps(system_a=customer_a.last_updated),
                conflicts=[],
                matched_fields=[]
            )

        if customer_a is None:
            return SyncResult(
                email=normalized,
                status=SyncStatus.SINGLE_SOURCE_ONLY,
                present_in=SourceSystem.SYSTEM_B,
                last_updated=SyncTimestamps(system_b=customer_b.last_updated),
                conflicts=[],
                matched_fields=[]
            )

        logger.info(f"Running sync diff for {normalized}")
        return diff_customers(customer_a, customer_b)

    async def check_health(self) -> HealthStatus:
        """Probe both systems concurrently; a probe that raises counts as unhealthy."""
        result_a, result_b = await asyncio.gather(
            self.system_a.is_healthy(),
            self.system_b.is_healthy(),
            return_exceptions=True
        )
        return HealthStatus(
            system_a=_absorb(result_a, self.system_a, "health check", False) is True,
            system_b=_absorb(result_b, self.system_b, "health check", False) is True
        )
