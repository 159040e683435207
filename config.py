import os

from dotenv import load_dotenv

# .env ke values pehle load, asli environment ko override nahi karte
load_dotenv(override=False)


class Config:
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", "3000"))

    # Storage
    DATA_FILE = os.environ.get("SCHOOL_DATA_FILE", "schoolData.json")
    UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "uploads")

    CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # History tab sirf itne din ka data dikhata hai
    HISTORY_DAYS = int(os.environ.get("HISTORY_DAYS", "30"))


settings = Config()
