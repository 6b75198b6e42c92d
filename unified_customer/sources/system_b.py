"""
System B Client
---------------
HTTP client for the external customer service (System B), which has better
contact data than System A but no contract data.

Every call is bounded by a timeout. Network errors, timeouts and unexpected
status codes are logged and reported as "absent" so the core can degrade to a
partial result instead of failing.
"""

import asyncio
import logging
from typing import List, Dict, Optional, Any
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from unified_customer.models.data_models import CustomerRecord, SourceSystem
from unified_customer.sources.base import CustomerSource

logger = logging.getLogger(__name__)


def record_from_payload(data: Dict[str, Any]) -> CustomerRecord:
    """
    Map a System B API payload onto a CustomerRecord.

    Args:
        data: JSON object with uuid, email, name, phone, address and last_updated

    Returns:
        CustomerRecord: The normalized record

    Raises:
        ValidationError: If the payload is missing fields or has an invalid email
    """
    return CustomerRecord(
        id=data.get("uuid"),
        email=data.get("email"),
        name=data.get("name"),
        address=data.get("address"),
        phone=data.get("phone"),
        last_updated=data.get("last_updated"),
        source=SourceSystem.SYSTEM_B
    )


class SystemBClient(CustomerSource):
    """CustomerSource backed by the System B REST API."""

    name = "system-b"

    def __init__(self, base_url: str, timeout: float = 5.0, health_timeout: float = 3.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_timeout = health_timeout

    async def _get_json(self, path: str, timeout: float, params: Optional[Dict[str, str]] = None):
        """Issue a GET request and return (status, parsed JSON body or None)."""
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{self.base_url}{path}",
                params=params,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    return response.status, None
                return response.status, await response.json(content_type=None)

    async def find_by_email(self, email: str) -> Optional[CustomerRecord]:
        try:
            status, data = await self._get_json(f"/customers/{quote(email, safe='')}", self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"System B findByEmail timed out for {email}")
            return None
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"System B findByEmail failed for {email}: {str(e)}")
            return None

        if status == 404:
            logger.debug(f"System B: No customer found for email {email}")
            return None
        if status != 200 or not isinstance(data, dict):
            logger.warning(f"System B findByEmail for {email} returned status {status}")
            return None

        try:
            record = record_from_payload(data)
        except ValidationError as e:
            logger.warning(f"System B: Invalid payload for {email}: {e.error_count()} validation error(s)")
            return None

        logger.debug(f"System B: Found customer {record.id} for email {email}")
        return record

    async def search_by_name(self, query: str) -> List[CustomerRecord]:
        try:
            status, data = await self._get_json("/customers", self.timeout, params={"q": query})
        except asyncio.TimeoutError:
            logger.warning(f"System B search timed out for \"{query}\"")
            return []
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"System B search failed for \"{query}\": {str(e)}")
            return []

        if status != 200 or not isinstance(data, list):
            logger.warning(f"System B search for \"{query}\" returned status {status}")
            return []

        records = []
        for item in data:
            try:
                records.append(record_from_payload(item))
            except (ValidationError, AttributeError):
                logger.warning(f"System B: Skipping invalid search result {item!r}")

        logger.debug(f"System B: Found {len(records)} customers matching \"{query}\"")
        return records

    async def is_healthy(self) -> bool:
        try:
            status, data = await self._get_json("/ping", self.health_timeout)
        except (asyncio.TimeoutError, aiohttp.ClientError, ValueError) as e:
            logger.warning(f"System B health check failed: {str(e) or type(e).__name__}")
            return False
        return status == 200 and isinstance(data, dict) and data.get("status") == "ok"
