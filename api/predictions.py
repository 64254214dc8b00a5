"""Vercel serverless function: GET and POST predictions.

Stores data in a GitHub repo file via the Contents API. Vercel's Python
runtime serves the ASGI ``app`` exported here at ``/api/predictions``.
"""

from config import settings
from config_validator import validate_env
from main import create_app

validate_env("remote")

app = create_app(
    settings.model_copy(
        update={"api_variant": "remote", "route_prefix": settings.route_prefix or "/api"}
    )
)
