"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Catalog document
    CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "lib.csv")
    CATALOG_OUTPUT_DIR = os.getenv("CATALOG_OUTPUT_DIR", ".")
    CATALOG_FILENAME = os.getenv("CATALOG_FILENAME", "lib.csv")
    BACKUP_FILENAME = os.getenv("BACKUP_FILENAME", "book-library-backup.json")

    # Decoding
    STRICT_DECODE = os.getenv("STRICT_DECODE", "false").lower() == "true"

    # Remote sources
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    MAX_CONCURRENT = int(os.getenv("MAX_CONCURRENT", "5"))
