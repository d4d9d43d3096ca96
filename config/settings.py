"""Central Configuration for the Healthspan Report Engine."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")

# LLM Settings
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")
ENABLE_NARRATIVES = os.getenv("ENABLE_NARRATIVES", "true").strip().lower() not in ("0", "false", "no")

# Scoring Model Settings
CARDIOLOGY_MODEL_VERSION = os.getenv("CARDIOLOGY_MODEL_VERSION", "v3_2")

# Report Settings
REPORT_SCHEMA_VERSION = "report-json-v3"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
