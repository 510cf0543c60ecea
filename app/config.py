import os
import sys


# Check if we're running in a test environment
def _is_testing():
    """Check if code is running under pytest."""
    return "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ


# OpenAI API key (OPTIONAL - without it meal analysis returns the fallback record)
# Get your API key at: https://platform.openai.com/api-keys
# Tests never talk to the real API, so the key is ignored under pytest.
OPENAI_API_KEY = None if _is_testing() else os.environ.get("OPENAI_API_KEY")

# Vision-capable chat model used for meal analysis and text generation
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")

# Per-request timeout for provider calls, in seconds
OPENAI_TIMEOUT_S = float(os.environ.get("OPENAI_TIMEOUT_S", "90"))

# SQLAlchemy database URL for the meal-plan service
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    "sqlite://" if _is_testing() else "sqlite:///meal_tracker.db",
)

# Echo SQL statements (debugging only)
DATABASE_ECHO = os.environ.get("DATABASE_ECHO", "").lower() in ("1", "true", "yes")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Locales the analysis prompts and fallback text are available in.
# Anything other than "hebrew" is treated as English.
DEFAULT_LOCALE = "english"
SUPPORTED_LOCALES = ("english", "hebrew")

# Provider request settings
ANALYSIS_MAX_TOKENS = 2000
ANALYSIS_TEMPERATURE = 0.3
UPDATE_MAX_TOKENS = 1500
UPDATE_TEMPERATURE = 0.2
TEXT_TEMPERATURE = 0.7

# Shopping list defaults for ingredients missing unit/category information
SHOPPING_DEFAULT_UNIT = "piece"
SHOPPING_DEFAULT_CATEGORY = "other"
SHOPPING_ESTIMATED_ITEM_COST = 5
