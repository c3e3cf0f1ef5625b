"""Server entry point for running the agent locally."""

import uvicorn

from .config import settings

if __name__ == "__main__":
    uvicorn.run(
        "healthylinkx_a2a.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,  # Enable auto-reload for development
        log_level=settings.log_level.lower(),
    )
