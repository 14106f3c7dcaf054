"""
Entry point for the memory-recall service.

Run with:
    uvicorn main:app --reload --port 3001
    python main.py
"""
import sys
from pathlib import Path

# Make the project root importable when launched from elsewhere
sys.path.insert(0, str(Path(__file__).parent))

import uvicorn
from config import get_settings
from recall.api.main import app

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run(
        "recall.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
