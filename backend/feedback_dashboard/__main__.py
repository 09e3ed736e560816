import logging

import uvicorn

from feedback_dashboard.main import app, settings

logger = logging.getLogger(__name__)


def main() -> None:
    logger.info("Feedback backend listening on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
