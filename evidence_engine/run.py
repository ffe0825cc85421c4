#!/usr/bin/env python3
"""
Quick runner for Evidence Report Service
========================================

Usage:
    python -m evidence_engine.run
"""

import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8000"))
    print("Starting Evidence Report Service...")
    print(f"API docs: http://localhost:{port}/docs")
    print(f"Health:   http://localhost:{port}/health")
    print()

    uvicorn.run(
        "evidence_engine.api:app",
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
