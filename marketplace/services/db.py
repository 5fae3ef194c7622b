import motor.motor_asyncio
from pymongo import ASCENDING

from marketplace.utils.config import MONGO_DETAILS, DB_NAME
from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
teams_coll = db["teams"]
users_coll = db["users"]
engagements_coll = db["engagements"]
transactions_coll = db["transactions"]

UNIQUE_INDEXES = [
    (teams_coll, "team_id"),
    (users_coll, "user_id"),
    (engagements_coll, "engagement_id"),
    (transactions_coll, "transaction_id"),
]

LOOKUP_INDEXES = [
    (engagements_coll, "consulting_firm_id"),
    (engagements_coll, "client_id"),
    (engagements_coll, "status"),
    (transactions_coll, "engagement_id"),
]


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    for coll, field in UNIQUE_INDEXES:
        try:
            await coll.create_index([(field, ASCENDING)], unique=True)
            logger.debug(f"Created unique index on {coll.name}.{field}")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {coll.name}.{field} already exists")
            else:
                logger.warning(f"Could not create unique index on {coll.name}.{field}: {e}")

    for coll, field in LOOKUP_INDEXES:
        try:
            await coll.create_index([(field, ASCENDING)])
            logger.debug(f"Created index on {coll.name}.{field}")
        except Exception as e:
            logger.warning(f"Could not create index on {coll.name}.{field}: {e}")

    logger.info("Database index initialization completed")
