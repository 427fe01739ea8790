import os
import dotenv
import logging

dotenv.load_dotenv()

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "WARNING"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 3000))

USER_AGENT = os.environ.get("USER_AGENT", "hydra-shields-endpoint")

HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", 30))

MAX_CONNECTIONS = int(os.environ.get("MAX_CONNECTIONS", 100))

# requests per second against the Hydra server, 0 disables the limiter
UPSTREAM_RATE_LIMIT = float(os.environ.get("UPSTREAM_RATE_LIMIT", 0))

PROJECTS_CACHE_SIZE = int(os.environ.get("PROJECTS_CACHE_SIZE", 100))
EVALS_CACHE_SIZE = int(os.environ.get("EVALS_CACHE_SIZE", 100))
BUILDS_CACHE_SIZE = int(os.environ.get("BUILDS_CACHE_SIZE", 1000))

CACHE_TTL = float(os.environ.get("CACHE_TTL", 0))
