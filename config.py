"""Application settings, read from the environment (and a local .env file)."""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid value %r for %s, using %s", raw, name, default)
        return default


# Storage
DB_PATH = os.getenv("DAIRY_DB_PATH", "dairy_cooperative.db")

# Statement header
DAIRY_NAME = os.getenv("DAIRY_NAME", "Panchamrit Suppliers")
DAIRY_ADDRESS = os.getenv("DAIRY_ADDRESS", "Banepa-9, Kavre")

# Billing
DEFAULT_FIXED_RATE = _get_float("DEFAULT_FIXED_RATE", 16.0)

# Calendar: there is no AD to BS conversion, "today" is configured
TODAY = os.getenv("DAIRY_TODAY", "2081-01-20")
REPORT_DEFAULT_START = os.getenv("REPORT_DEFAULT_START", "2081-01-16")
REPORT_DEFAULT_END = os.getenv("REPORT_DEFAULT_END", "2081-01-31")

# PDF statements: a TTF with Devanagari glyphs, so farmer names print as typed.
# Blank means look in PDF_FONT_CANDIDATES.
PDF_FONT_PATH = os.getenv("PDF_FONT_PATH", "")
PDF_FONT_CANDIDATES = [
    BASE_DIR / "fonts" / "NotoSansDevanagari-Regular.ttf",
    Path("/usr/share/fonts/truetype/noto/NotoSansDevanagari-Regular.ttf"),
    Path("/usr/share/fonts/truetype/lohit-devanagari/Lohit-Devanagari.ttf"),
    Path("/usr/share/fonts/truetype/freefont/FreeSans.ttf"),
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = None):
    """Install a basic root handler. Safe to call more than once."""
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
