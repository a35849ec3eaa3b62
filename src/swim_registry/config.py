"""Configuration loader for Swim Registry with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL", "sqlite:///./data/users.db"),
    "port": int(os.getenv("PORT", "8080")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    # Directory holding index.html and the static/ assets of the web frontend
    "static_dir": os.getenv("STATIC_DIR", "./frontend"),
    # Comma separated list of allowed origins, "*" allows any
    "cors_origins": os.getenv("CORS_ORIGINS", "*"),
    "environment": os.getenv("ENVIRONMENT", "development"),
}
