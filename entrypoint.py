import uvicorn
import os
from logging_config import setup_logging

# Setup logging before importing app
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)

from app import app  # noqa: E402,F401
from constants import BACKEND_URL, HOST, PORT, RELOAD, WS_PING_INTERVAL, WS_PING_TIMEOUT  # noqa: E402
from logging_config import get_logger  # noqa: E402

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info(f"Signaling server live at http://{HOST}:{PORT}")
    logger.info(f"Backend connected: {BACKEND_URL}")
    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=RELOAD,
        ws_ping_interval=WS_PING_INTERVAL,
        ws_ping_timeout=WS_PING_TIMEOUT,
        log_config=None,
    )
