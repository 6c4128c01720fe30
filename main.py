import argparse
import logging

from killmail_api import config
from killmail_api.app import create_app


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app()

if __name__ == "__main__":
    import uvicorn

    parser = argparse.ArgumentParser(description="Killmail API server.")
    parser.add_argument("--host", default=config.BIND_HOST, help="Address to bind.")
    parser.add_argument("--port", type=int, default=config.BIND_PORT, help="Port to bind.")
    parser.add_argument(
        "--mongo-uri",
        default=config.MONGO_URI,
        help="MongoDB connection string.",
    )
    args = parser.parse_args()
    config.MONGO_URI = args.mongo_uri

    logger.info("Starting killmail api server")
    uvicorn.run(app, host=args.host, port=args.port)
