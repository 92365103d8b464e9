import time

from flask import Blueprint, current_app

from . import responses

bp = Blueprint("health", __name__)

_started_at = time.monotonic()


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    return responses.success(
        {
            "status": "ok",
            "name": current_app.config.get("APP_NAME"),
            "environment": current_app.config.get("APP_ENV"),
            "version": current_app.config.get("APP_VERSION"),
            "uptime": round(time.monotonic() - _started_at, 3),
        }
    )
