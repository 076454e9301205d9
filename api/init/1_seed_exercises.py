"""
Script to seed the exercise database and the first flexibility study.

Existing exercises are replaced; the study's exercise list is reset.
"""
import sys
import logging
from pathlib import Path

# Add the api directory to Python path so we can import from algespace
script_dir = Path(__file__).parent
api_dir = script_dir.parent
sys.path.insert(0, str(api_dir))

from sqlmodel import Session
from algespace.core.database import engine, init_db, study_engine
from algespace.data.examples import FIRST_STUDY_ID, get_equalization_exercises, get_first_study, get_flexibility_exercises
from algespace.services import exercise_service, flexibility_study_service

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def seed_exercises():
    with Session(engine) as session:
        try:
            equalization = exercise_service.set_equalization_exercises(session, get_equalization_exercises())
            flexibility = exercise_service.set_flexibility_exercises(session, get_flexibility_exercises())
            logger.info(f"Seeded {equalization} equalization and {flexibility} flexibility exercises")
        except Exception as e:
            session.rollback()
            logger.error("Error seeding exercises: %s", e, exc_info=True)
            raise


def seed_first_study():
    with Session(study_engine) as session:
        try:
            flexibility_study_service.add_study(session, FIRST_STUDY_ID, get_first_study())
        except Exception as e:
            session.rollback()
            logger.error("Error seeding study %s: %s", FIRST_STUDY_ID, e, exc_info=True)
            raise


if __name__ == "__main__":
    logger.info("Starting seeding...")
    try:
        init_db()
        seed_exercises()
        seed_first_study()
        logger.info("Successfully completed!")
    except Exception as e:
        logger.error("Error during seeding: %s", e, exc_info=True)
        sys.exit(1)
