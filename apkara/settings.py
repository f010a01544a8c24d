"""Configuration for the ap kara dispatch bot."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = BASE_DIR / "logs"
LOGS_DIR.mkdir(exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")

# External processor
PROCESSOR_URL = os.getenv("PROCESSOR_URL", "http://localhost:5000/process-data")
PROCESSOR_TIMEOUT = int(os.getenv("PROCESSOR_TIMEOUT", "300"))  # 5 minutes

# WhatsApp gateway (Evolution API style)
GATEWAY_BASE_URL = os.getenv("GATEWAY_BASE_URL")
GATEWAY_INSTANCE = os.getenv("GATEWAY_INSTANCE")
GATEWAY_API_KEY = os.getenv("GATEWAY_API_KEY")
GATEWAY_TIMEOUT = int(os.getenv("GATEWAY_TIMEOUT", "30"))

# Command handling
WATCHED_GROUP = os.getenv("WATCHED_GROUP", "Test")
TRIGGER_PHRASE = os.getenv("TRIGGER_PHRASE", "ap kara")

# Queue settings
QUEUE_PACING_SECONDS = float(os.getenv("QUEUE_PACING_SECONDS", "10"))  # pause between dispatches

# Reply context settings
CONTEXT_TTL_HOURS = int(os.getenv("CONTEXT_TTL_HOURS", "24"))
CONTEXT_SWEEP_INTERVAL = int(os.getenv("CONTEXT_SWEEP_INTERVAL", str(6 * 60 * 60)))  # seconds

# Screenshots
SS_RECIPIENT_NUM = os.getenv("SS_RECIPIENT_NUM")
SCREENSHOT_RECIPIENT = f"91{SS_RECIPIENT_NUM}@s.whatsapp.net" if SS_RECIPIENT_NUM else None
SCREENSHOT_PATH = os.getenv("SCREENSHOT_PATH", str(BASE_DIR / "details.png"))
ERROR_SCREENSHOT_PATH = os.getenv("ERROR_SCREENSHOT_PATH", str(BASE_DIR / "error_ss.png"))

# Control server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))


def validate_config():
    """Validate required configuration."""
    errors = []

    if not PROCESSOR_URL:
        errors.append("PROCESSOR_URL is required")

    if not GATEWAY_BASE_URL:
        errors.append("GATEWAY_BASE_URL is required")
    if not GATEWAY_INSTANCE:
        errors.append("GATEWAY_INSTANCE is required")
    if not GATEWAY_API_KEY:
        errors.append("GATEWAY_API_KEY is required")

    if QUEUE_PACING_SECONDS < 0:
        errors.append(f"QUEUE_PACING_SECONDS must not be negative: {QUEUE_PACING_SECONDS}")

    if CONTEXT_SWEEP_INTERVAL <= 0:
        errors.append(f"CONTEXT_SWEEP_INTERVAL must be positive: {CONTEXT_SWEEP_INTERVAL}")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
