"""
asgi.py -- Application assembly for the LearnLite auth API.

Settings are read from the environment here, once, at process start.

Run with:  uvicorn asgi:app --reload
"""

from api.main import configure_logging, create_app
from core.config import get_settings

configure_logging(get_settings().log_level)
app = create_app(get_settings())
