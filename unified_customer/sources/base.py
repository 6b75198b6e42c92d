"""
Customer Source Interface
------------------------
The capability both systems expose to the reconciliation core. Implementations
must absorb their own transport and storage failures: a failed lookup returns
None, a failed search returns an empty list, a failed probe returns False.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from unified_customer.models.data_models import CustomerRecord


class CustomerSource(ABC):
    """Read-only access to one system's customer records."""

    name: str = "source"

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[CustomerRecord]:
        """Return the customer for a normalized email, or None if there is none."""

    @abstractmethod
    async def search_by_name(self, query: str) -> List[CustomerRecord]:
        """Return customers whose name contains the query (case-insensitive)."""

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Return True if the system is reachable."""
