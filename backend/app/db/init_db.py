import logging

from app.db.session import engine, Base

logger = logging.getLogger(__name__)

def init_db():
    """Initialize database tables"""
    # Import all models to ensure they are registered with SQLAlchemy
    from app.models import Admin, Brand, Campaign, Influencer  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

if __name__ == "__main__":
    init_db()
