"""
Mock System B API
-----------------
A stand-in for the external System B service, mounted under /mock-api so the
unified service can run end to end on a developer machine. Responses can be
delayed randomly (MOCK_API_MAX_DELAY_MS) to mimic a remote system.
"""

import asyncio
import logging
import random
from typing import List, Dict

from fastapi import APIRouter, HTTPException, Query

from unified_customer.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mock-api", tags=["mock-api"])

SYSTEM_B_MOCK_DATA: List[Dict[str, str]] = [
    {
        "uuid": "modern_101",
        "email": "max.mustermann@example.de",
        "name": "Max Mustermann",
        "phone": "+49 170 123 4567",
        "address": "Sonnenallee 1a, 12345 Berlin",
        "last_updated": "2025-01-10T08:00:00Z",
    },
    {
        "uuid": "modern_102",
        "email": "erika.muster@example.de",
        "name": "Erika Musterfrau",
        "phone": "+49 171 987 6543",
        "address": "Hauptstr. 42, 10115 Berlin",
        "last_updated": "2024-09-01T11:00:00Z",
    },
    {
        "uuid": "modern_103",
        "email": "lisa.neu@example.de",
        "name": "Lisa Neumann",
        "phone": "+49 172 555 0000",
        "address": "Friedrichstr. 99, 10117 Berlin",
        "last_updated": "2025-01-15T12:00:00Z",
    },
    {
        "uuid": "modern_104",
        "email": "sophie.mueller@example.de",
        "name": "Sophie Mueller",
        "phone": "+49 173 444 8888",
        "address": "Kastanienallee 7a, 10435 Berlin",
        "last_updated": "2025-02-01T09:30:00Z",
    },
]


async def random_delay():
    max_delay_ms = get_settings().mock_api_max_delay_ms
    if max_delay_ms > 0:
        await asyncio.sleep(random.uniform(0, max_delay_ms) / 1000)


@router.get("/ping")
async def ping():
    """Health check for the mock System B API."""
    await random_delay()
    return {"status": "ok"}


@router.get("/customers/{email}")
async def get_by_email(email: str):
    """Get a customer by email (case-insensitive)."""
    await random_delay()

    for customer in SYSTEM_B_MOCK_DATA:
        if customer["email"].lower() == email.lower():
            logger.debug(f"Mock API: Returning customer {customer['uuid']}")
            return customer

    logger.debug(f"Mock API: Customer not found for email {email}")
    raise HTTPException(status_code=404, detail=f"Customer not found: {email}")


@router.get("/customers")
async def search(q: str = Query("")):
    """Search customers by partial name (case-insensitive)."""
    await random_delay()

    if not q:
        return []

    results = [c for c in SYSTEM_B_MOCK_DATA if q.lower() in c["name"].lower()]
    logger.debug(f"Mock API: Found {len(results)} results for query \"{q}\"")
    return results
