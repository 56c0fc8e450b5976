"""
Backend configuration
"""

import os

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CORS origins (viewer frontend URL)
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
).split(",")

# Annotation database; empty means a sidecar file next to each image
ANNOTATION_DB_PATH = os.getenv("ANNOTATION_DB_PATH", "") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
