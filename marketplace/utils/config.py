import os
from dotenv import load_dotenv

load_dotenv()

# Persistence
MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "marketplace_db")

# Engagements
PLATFORM_FEE_PERCENT = float(os.getenv("PLATFORM_FEE_PERCENT", "22.5"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")
ENGAGEMENT_SEARCH_LIMIT = int(os.getenv("ENGAGEMENT_SEARCH_LIMIT", "20"))

# Member suggestions
SUGGESTION_MIN_SCORE = int(os.getenv("SUGGESTION_MIN_SCORE", "3"))
SUGGESTION_POOL_SIZE = int(os.getenv("SUGGESTION_POOL_SIZE", "100"))
SUGGESTION_DEFAULT_LIMIT = int(os.getenv("SUGGESTION_DEFAULT_LIMIT", "10"))
LOCATION_MATCH_POINTS = int(os.getenv("LOCATION_MATCH_POINTS", "3"))

# Verification
VERIFICATION_SKILL_WEIGHT = float(os.getenv("VERIFICATION_SKILL_WEIGHT", "0.4"))
VERIFICATION_PORTFOLIO_WEIGHT = float(os.getenv("VERIFICATION_PORTFOLIO_WEIGHT", "0.35"))
VERIFICATION_EXPERIENCE_WEIGHT = float(os.getenv("VERIFICATION_EXPERIENCE_WEIGHT", "0.25"))
