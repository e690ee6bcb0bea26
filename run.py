import logging

import uvicorn

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

# Silence SQL loggers: statements may carry customer data
for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

from app import app


def main() -> None:
    logging.info(f"🚀 Starting Maikanwa Store API on {config.WEBAPP_HOST}:{config.WEBAPP_PORT} "
                 f"({config.RUNTIME_ENVIRONMENT.value})")
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)


if __name__ == '__main__':
    main()
