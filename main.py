#!/usr/bin/env python3
"""
pdf study assistant

A FastAPI application that summarizes uploaded PDF documents with Gemini,
merges their topics into one index and builds a personal study roadmap.

To start the server:
    python main.py
"""

import sys
from pathlib import Path

# add src to python path so the package imports without installing it
sys.path.insert(0, str(Path(__file__).parent / "src"))

# start the fastapi server when this file is run
if __name__ == "__main__":
    import uvicorn
    # run the api app on port 8000 with auto-reload for development
    uvicorn.run("study_assistant.api:app", host="0.0.0.0", port=8000, reload=True, app_dir="src")
