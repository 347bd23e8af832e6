"""Run with: python -m lead_router.api"""

import logging

import uvicorn

from ..config import settings
from .main import create_app

if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    app = create_app()
    uvicorn.run(app, host=settings.host, port=settings.port)
