# config/settings.py
import os

# LLM Configuration
# Use environment variable for Docker compatibility, fallback to localhost
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "localhost")
OLLAMA_URL = f"http://{OLLAMA_HOST}:11434/api/generate"
DEFAULT_LOCAL_MODEL = os.getenv("OLLAMA_MODEL", "qwen2.5:7b")
GCP_LLM_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
DEFAULT_LLM_ENGINE = os.getenv("LLM_ENGINE", "local")  # 'local' (Ollama) or 'gcp' (Gemini)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")  # Required for the 'gcp' engine

# LLM Generation Parameters
LLM_TEMPERATURE = 0.1  # Low temperature keeps type suggestions stable
LLM_TOP_P = 0.9
LLM_MAX_OUTPUT_TOKENS = 2048

# Classification Thresholds
NEEDS_REVIEW_THRESHOLD = 60  # Doubt score at which a greedy decision is flagged
SCORE_TIE_THRESHOLD = 5  # Candidates within this many points of the max count as tied
FALLBACK_MAX_SCORE_GAP = 25  # Fallback rules only fire when the top two are this close
CONTEXT_WINDOW_SIZE = 3  # Non-blank lines collected before/after the current line
CHARACTER_PREPASS_ENABLED = True  # Seed document memory with colon-terminated names

# Sequence Decoder (Viterbi) Configuration
VITERBI_EMISSION_WEIGHT = 0.6  # Weight of the per-line emission score
VITERBI_TRANSITION_WEIGHT = 0.4  # Weight of the type-to-type transition score
VITERBI_UPDATE_MEMORY = True  # Learn character names from the decoded path
VITERBI_REVIEW_DOUBT = 60  # Emission-gap doubt at which a decoded line is flagged

# Review Configuration
REVIEW_ENABLED = os.getenv("REVIEW_ENABLED", "false").lower() == "true"
REVIEW_DOUBT_THRESHOLD = int(os.getenv("REVIEW_DOUBT_THRESHOLD", "20"))  # Lines at or above go to the LLM
REVIEW_BATCH_SIZE = 20  # Lines per LLM request
REVIEW_CONTEXT_LINES = 3  # Lines of context on each side of a reviewed line
REVIEW_MAX_CONCURRENT_BATCHES = 3  # Upper bound on in-flight LLM requests
REVIEW_TIMEOUT_SECONDS = 30  # Per-request timeout
REVIEW_MAX_RETRIES = 3  # Attempts per batch before giving up
REVIEW_RETRY_MIN_WAIT = 1  # Exponential backoff floor (seconds)
REVIEW_RETRY_MAX_WAIT = 10  # Exponential backoff ceiling (seconds)
REVIEW_MIN_CONFIDENCE = 0  # Suggestions below this confidence are ignored

# HTTP Retry Configuration
HTTP_RETRY_STATUS_CODES = [429, 500, 502, 503, 504]  # Statuses treated as transient

# LLM Response Caching Configuration
LLM_CACHE_ENABLED = True  # Enable LLM response caching with hash-based keys
LLM_CACHE_MAX_SIZE = 1000  # Maximum number of cached responses
LLM_CACHE_TTL_SECONDS = 86400  # Cache time-to-live (24 hours)
LLM_CACHE_HASH_LENGTH = 16  # Length of hash keys (hex characters)

# Output Paths
OUTPUT_DIR = "output"
LOG_DIR = "logs"

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CONSOLE_LOG_LEVEL = "INFO"  # Level for console output
FILE_LOG_LEVEL = "DEBUG"    # Level for file output (more detailed)

# LLM Debug Logging Configuration
LLM_DEBUG_LOGGING = False   # Enable detailed LLM interaction logging
LLM_DEBUG_LOG_FILE = "llm_debug.log"  # Separate debug log file for LLM interactions
LLM_DEBUG_TRUNCATE_LENGTH = 0  # Maximum characters to log for large prompts/responses (0 = no limit)
