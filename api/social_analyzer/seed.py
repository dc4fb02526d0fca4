from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .db import SessionLocal, transaction

logger = logging.getLogger(__name__)

DEFAULT_TAGS = ("Marketing", "Engagement", "Trending", "Business", "Technology")


def ensure_seed_data(db: Session | None = None) -> int:
    """
    Create the default tags that are missing. Existing tags are left alone.

    Returns:
        Number of tags created
    """
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        with transaction(db):
            existing = {name for (name,) in db.query(func.lower(models.Tag.name)).all()}
            missing = [name for name in DEFAULT_TAGS if name.lower() not in existing]
            for name in missing:
                db.add(models.Tag(name=name))
        if missing:
            logger.info("ensure_seed_data: Created default tags %s", ", ".join(missing))
        else:
            logger.info("ensure_seed_data: Default tags already present.")
        return len(missing)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
