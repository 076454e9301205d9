"""
Script to clear the tracking tables of the study database.

Study and exercise definitions are kept; only tracking entries are removed.
"""
import sys
import logging
from pathlib import Path

# Add the api directory to Python path so we can import from algespace
script_dir = Path(__file__).parent
api_dir = script_dir.parent
sys.path.insert(0, str(api_dir))

from sqlmodel import Session, select
from algespace.core.database import init_db, study_engine
from algespace.models.study import CKStudyData, FlexibilityStudyData

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def clear_tables():
    """Delete all flexibility and conceptual knowledge tracking entries."""
    with Session(study_engine) as session:
        try:
            for model in (FlexibilityStudyData, CKStudyData):
                logger.info(f"Deleting all rows of {model.__tablename__}...")
                rows = session.exec(select(model)).all()
                for row in rows:
                    session.delete(row)
                logger.info(f"Deleted {len(rows)} rows of {model.__tablename__}")

            session.commit()
            logger.info("Successfully cleared tracking tables")

        except Exception as e:
            session.rollback()
            logger.error("Error clearing tables: %s", e, exc_info=True)
            raise


if __name__ == "__main__":
    logger.info("Starting table clearing...")
    try:
        init_db()
        clear_tables()
        logger.info("Successfully completed!")
    except Exception as e:
        logger.error("Error during table clearing: %s", e, exc_info=True)
        sys.exit(1)
