import os

BACKEND_URL = os.getenv("BACKEND_URL", "http://study-hub-backend-iota.vercel.app")
AUTH_VERIFY_PATH = os.getenv("AUTH_VERIFY_PATH", "/api/auth/verify-token")
AUTH_TIMEOUT = float(os.getenv("AUTH_TIMEOUT", 10))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))
RELOAD = os.getenv("RELOAD", "false").lower() == "true"

# Transport heartbeat, surfaces dead peers as disconnects
WS_PING_INTERVAL = float(os.getenv("WS_PING_INTERVAL", 25))
WS_PING_TIMEOUT = float(os.getenv("WS_PING_TIMEOUT", 20))

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "https://studyhub.live",  # production frontend
]
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", ",".join(DEFAULT_ALLOWED_ORIGINS)).split(",")
    if origin.strip()
]

MAX_NAME_LENGTH = 64
MAX_ROOM_ID_LENGTH = 128
MAX_FRAME_SIZE = 64 * 1024

SERVICE_BANNER = "StudyHub Signaling Server running"
