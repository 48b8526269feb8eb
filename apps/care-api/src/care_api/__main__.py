from __future__ import annotations

import os

import uvicorn
from devkit.observability import configure_logging


def main() -> None:
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    host = os.getenv("CARE_API_HOST", "0.0.0.0")
    port = int(os.getenv("CARE_API_PORT", "8100"))
    uvicorn.run("care_api.app:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
