"""
Run FastAPI HTTP Server

Starts the FastAPI server for slot booking and reschedule negotiation.
"""

import os
import uvicorn
from interview_booking.config import get_config

if __name__ == "__main__":
    config = get_config()

    # Hosting platforms provide PORT; fall back to config otherwise
    port = int(os.environ.get("PORT", config.server.port))
    host = os.environ.get("HOST", config.server.host)

    uvicorn.run(
        "interview_booking.api.main:app",
        host=host,
        port=port,
        reload=False,
        log_level=config.LOG_LEVEL.lower(),
    )
