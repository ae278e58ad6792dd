"""
config.py

Configuration module for the document extraction pipeline.

Purpose:
--------
Contains the constants and settings used across the module: recognition
engine selection, preprocessing parameters for both OCR attempts, LLM
provider and credential settings, text repair thresholds, and security
limits for uploaded files.

Design Principle:
-----------------
Configuration is isolated from business logic.
Changing thresholds or switching the engine / LLM provider should
not require editing core extraction code.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# -----------------------------
# Recognition engine
# -----------------------------
OCR_ENGINE = os.getenv("EXTRACTION_OCR_ENGINE", "surya")  # surya | tesseract
OCR_SCRIPT_HINT = "ara+eng"  # primary script + Latin
MIN_RECOGNIZED_CHARS = 3
ENABLE_OCR_TEXT_CLEANUP = True

# -----------------------------
# Preprocessing
# -----------------------------
DARK_PIXEL_THRESHOLD = 128
NORMALIZE_PERCENTILES = (1.0, 99.0)
CONTRAST_OFFSET = -20
MEDIAN_WINDOW = 3
SHARPEN_SIGMA = 1.5
SHARPEN_AMOUNT = 1.0
MIN_DIMENSION = 1000
MIN_UPSCALE_FACTOR = 1.5
SKEW_CANDIDATE_ANGLES = (-5, -4, -3, -2, -1, 0, 1, 2, 3, 4, 5)
MIN_SKEW_CORRECTION = 0.5

# Second attempt is always the more aggressive one
ATTEMPT_SETTINGS = {
    1: {
        "contrast_multiplier": 1.3,
        "block_size": 21,
        "threshold_c": 8,
        "closing_kernel": 3,
        "opening_kernel": 2,
    },
    2: {
        "contrast_multiplier": 1.5,
        "block_size": 31,
        "threshold_c": 12,
        "closing_kernel": 5,
        "opening_kernel": 3,
    },
}

# -----------------------------
# LLM collaborator
# -----------------------------
LLM_PROVIDER = os.getenv("EXTRACTION_LLM_PROVIDER", "groq")  # groq | gemini
DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "gemini": "gemini-1.5-flash",
}
LLM_MODEL = os.getenv("EXTRACTION_LLM_MODEL", DEFAULT_MODELS.get(LLM_PROVIDER, ""))

# Comma-separated pool variable first, single-key variable second
API_KEY_ENV_VARS = {
    "groq": ("GROQ_API_KEYS", "GROQ_API_KEY"),
    "gemini": ("GOOGLE_API_KEYS", "GOOGLE_API_KEY"),
}

LLM_MAX_ATTEMPTS = int(os.getenv("EXTRACTION_LLM_MAX_ATTEMPTS", "2"))
LLM_RETRY_BACKOFF_SECONDS = float(os.getenv("EXTRACTION_LLM_RETRY_BACKOFF", "3"))
KEY_COOLDOWN_SECONDS = float(os.getenv("EXTRACTION_KEY_COOLDOWN", "60"))
KEY_MAX_CONSECUTIVE_ERRORS = 3

# -----------------------------
# Text repair
# -----------------------------
CORRECTION_MIN_CHARS = 5
CORRECTION_MAX_TOKENS = 2048
CORRECTION_TEMPERATURE = 0.1

MERGE_MIN_CHARS = 50
MERGE_CHUNK_SIZE = 6000
MERGE_MAX_TOKENS = 4096
MERGE_TEMPERATURE = 0.1
MERGE_WORKERS = int(os.getenv("EXTRACTION_MERGE_WORKERS", "1"))
CHUNK_BREAK_CHARS = ".!?؟\n"

STRUCTURE_MIN_CHARS = 100
STRUCTURE_MAX_CHARS = 8000
STRUCTURE_MAX_TOKENS = 8192
STRUCTURE_TEMPERATURE = 0.2
DEFAULT_SECTION_TITLE = "المحتوى"

# -----------------------------
# PDF handling
# -----------------------------
PDF_RENDER_DPI = 300
ENABLE_SCANNED_PDF_OCR = True
ENABLE_HEADER_FOOTER_REMOVAL = True

# -----------------------------
# Security
# -----------------------------
MAX_FILE_SIZE_MB = 50
ALLOWED_EXTENSIONS = [
    ".png", ".jpg", ".jpeg", ".tiff", ".bmp", ".webp",
    ".pdf", ".docx", ".txt", ".md",
]
