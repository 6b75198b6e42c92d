"""
Unified Customer Service Entry Point
------------------------------------
This file serves as the entry point for the application. It starts the FastAPI
app defined in unified_customer.main with uvicorn.
"""

import logging

from unified_customer.config import get_settings
from unified_customer.main import app

logger = logging.getLogger(__name__)

# If this file is run directly, start the server
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting Unified Customer Service on port {settings.port}")
    uvicorn.run("app:app", host=settings.host, port=settings.port, reload=True)
