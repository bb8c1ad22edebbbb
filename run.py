#!/usr/bin/env python3
"""
Launcher script for the calgrid API.
Run this from the root directory to start the application.
"""

import uvicorn
import sys
import os

# Add the current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from calgrid.config import HOST, PORT, LOG_LEVEL

if __name__ == "__main__":
    print("🚀 Starting calgrid API with auto-reload...")
    print(f"📖 API Documentation: http://localhost:{PORT}/docs")
    print(f"🔍 Health Check: http://localhost:{PORT}/health")
    print("🛑 Press Ctrl+C to stop the server")
    print("-" * 50)

    # Import string format so reload works
    uvicorn.run(
        "calgrid.main:app",
        host=HOST,
        port=PORT,
        reload=True,
        reload_dirs=["calgrid"],
        log_level=LOG_LEVEL.lower()
    )
