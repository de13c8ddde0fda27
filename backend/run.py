#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Starts uvicorn with autoreload against the local SQLite database unless
DATABASE_URL points somewhere else.
"""
import os
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"Starting Parla scheduling on http://localhost:{port}")
    print(f"API docs: http://localhost:{port}/docs")

    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
