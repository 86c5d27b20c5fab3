import os
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or its parent directory
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

class Config:
    # Leave MONGO_URI unset to keep groups in memory
    MONGO_URI = os.getenv('MONGO_URI')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'splitledger')

    SETTLEMENT_EPSILON = Decimal(os.getenv('SETTLEMENT_EPSILON', '0.005'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://localhost:8080').split(',')
        if origin.strip()
    ]

class TestingConfig(Config):
    TESTING = True
    MONGO_URI = None
    LOG_LEVEL = 'DEBUG'
