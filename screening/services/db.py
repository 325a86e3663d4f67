import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

from screening.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "screening_db")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS, tz_aware=True)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
resumes_coll = db["resumes"]
profiles_coll = db["profiles"]
vacancies_coll = db["vacancies"]
analyses_coll = db["analyses"]

UNIQUE_KEYS = [
    (resumes_coll, "resume_id"),
    (profiles_coll, "resume_id"),
    (vacancies_coll, "vacancy_id"),
    (analyses_coll, "analysis_id"),
]


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    for coll, key in UNIQUE_KEYS:
        try:
            await coll.create_index([(key, ASCENDING)], unique=True)
            logger.debug(f"Created unique index on {coll.name}.{key}")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {coll.name}.{key} already exists")
            else:
                logger.warning(f"Could not create unique index on {coll.name}.{key}: {e}")

    try:
        await analyses_coll.create_index([("vacancy_id", ASCENDING), ("created_at", DESCENDING)])
        await analyses_coll.create_index([("owner_id", ASCENDING)])
        await vacancies_coll.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
        await resumes_coll.create_index([("owner_id", ASCENDING)])
        logger.debug("Created owner and listing indexes")
    except Exception as e:
        logger.warning(f"Could not create some secondary indexes: {e}")

    logger.info("Database index initialization completed")


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc
