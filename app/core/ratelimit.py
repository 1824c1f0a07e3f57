# File: app\core\ratelimit.py
# Project: civic-reports-backend

from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings

limiter = Limiter(key_func=get_remote_address)

SUBMISSION_LIMIT = settings.submission_rate_limit
