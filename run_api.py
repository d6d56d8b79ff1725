#!/usr/bin/env python
"""
Run the scheduler API locally without Docker.

Run: python run_api.py

Then open browser: http://localhost:8000/docs
"""
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "tourops.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
