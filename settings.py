# settings.py
import os
from dotenv import load_dotenv

load_dotenv()

VERSION = "2025-11-09.r3"

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_CLASSIFIER_MODEL = os.getenv("OPENAI_CLASSIFIER_MODEL", OPENAI_MODEL)
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))
OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "1"))

# WhatsApp Cloud API
VERIFY_TOKEN = os.getenv("VERIFY_TOKEN", "")
WHATSAPP_TOKEN = os.getenv("WHATSAPP_TOKEN", "")
PHONE_NUMBER_ID = os.getenv("PHONE_NUMBER_ID", "")
GRAPH_API_VERSION = os.getenv("GRAPH_API_VERSION", "v20.0")

# Optional OCR.Space fallback
OCR_API_KEY = os.getenv("OCR_API_KEY", "")

# Shift schedule link
INDEX_URL = os.getenv("INDEX_URL", "")

if not OPENAI_API_KEY:
    raise RuntimeError("Missing OPENAI_API_KEY")

# Knowledge base
KB_DIR = os.getenv("KB_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "kb"))
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1200"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
EMBED_BATCH_SIZE = int(os.getenv("EMBED_BATCH_SIZE", "64"))
KB_TOP_K = int(os.getenv("KB_TOP_K", "6"))
KB_CONTEXT_CHARS = int(os.getenv("KB_CONTEXT_CHARS", "7000"))

# Conversation
MAX_TURNS = 8
DETECT_SAMPLE_CHARS = 600
DEFAULT_LANGUAGE = "en"

# Telemetry / logging
TELEMETRY_DB = os.getenv("TELEMETRY_DB", "telemetry.sqlite3")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
