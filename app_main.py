"""Application entry point for the RaySphere exam API."""

from __future__ import annotations

from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.exam_manager import ExamManager
from exam_app.server.api_server import run_api_server
from exam_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and serve the exam API."""
    logger = configure_logging()
    logger.info("Starting RaySphere exam API on %s:%d", DEFAULT_HOST, DEFAULT_PORT)

    exam_manager = ExamManager()
    run_api_server(exam_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
