from dotenv import load_dotenv
from loguru import logger

from frontdesk.api.server import run_server

load_dotenv()


if __name__ == "__main__":
    logger.info("Starting front-desk API")
    run_server()
