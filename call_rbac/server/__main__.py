"""Entry point: ``python -m call_rbac.server``."""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from call_rbac.core.config import Settings  # noqa: E402
from call_rbac.core.logging_config import setup_logging  # noqa: E402

from .app import create_app  # noqa: E402

if __name__ == "__main__":
    settings = Settings()
    setup_logging(settings=settings)
    uvicorn.run(create_app(settings=settings), host=settings.api_host, port=settings.api_port)
