"""
POS Terminal: local launcher.

Equivalent to `uvicorn pos_terminal.main:app`, with host/port from the
environment.
"""
import os

import uvicorn

from pos_terminal.utils.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "pos_terminal.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.DEBUG,
    )
