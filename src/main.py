"""Application entry point for the vehicle registration OCR API server."""

import uvicorn
from dotenv import load_dotenv


def main() -> None:
    """Start the FastAPI application server."""
    load_dotenv()

    from src.api.app import app, config
    from src.utils.logger import setup_logging

    setup_logging(config.log_level)
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
