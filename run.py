#!/usr/bin/env python3
"""
Development server runner for wslstack
"""

import os

import uvicorn
from dotenv import load_dotenv


if __name__ == "__main__":
    load_dotenv()

    host = os.getenv("WSLSTACK_HOST", "127.0.0.1")
    port = int(os.getenv("WSLSTACK_PORT", "8000"))

    print(f"Starting wslstack development server on port {port}")
    uvicorn.run("wslstack.main:app", host=host, port=port, reload=False, log_level="info")
