"""
Runtime configuration for the contraceptive decision engine service.

Values are read from the environment (optionally via a local .env file).
The engines themselves take no configuration; clinical thresholds live as
constants on the engine classes so that every evaluation is reproducible.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ==================== CONFIGURATION ====================
class Config:
    APP_TITLE      = os.getenv("APP_TITLE", "Contraceptive Decision Engine")
    ENGINE_VERSION = os.getenv("ENGINE_VERSION", "1.0.0")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8000"))

    # Comma separated; "*" allows every origin
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]
