import logging

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import storage

bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)


@bp.get("/health")
def health():
    """
    Health check (includes a database round trip)
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            database:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
      503:
        description: Database unreachable
    """
    try:
        storage.get_session().execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("health check: database unreachable")
        return {"status": "degraded", "database": "unreachable", "version": "1.0.0"}, 503
    return {"status": "ok", "database": "ok", "version": "1.0.0"}, 200
