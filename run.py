"""
Entry point for the gingival reconstruction service.

Running this script with ``python run.py`` will start the FastAPI
server exposing the reconstruction API.  The application defined in
``backend/gumline/main.py`` is imported after adjusting the Python path
to include the backend directory.

The listening address can be changed with ``GUMLINE_HOST`` and
``GUMLINE_PORT``.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import logging
import uvicorn

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main() -> None:
    """Run the Uvicorn server hosting the reconstruction API."""
    # Ensure ``backend`` is on sys.path so that ``gumline`` can be
    # imported without installing the project.
    backend_dir = Path(__file__).resolve().parent / "backend"
    if str(backend_dir) not in sys.path:
        sys.path.append(str(backend_dir))

    # Import inside main() to avoid modifying sys.path at module import time.
    from gumline.main import app  # type: ignore

    host = os.getenv("GUMLINE_HOST", "0.0.0.0")
    port = int(os.getenv("GUMLINE_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
