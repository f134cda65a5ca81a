"""
API Relay Gateway
Main entry point for the application.

Usage:
    python main.py          # listen on port 2233
    python main.py 8080     # listen on port 8080
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

# Load environment variables
load_dotenv(".env.local")

from src.proxy.server import main  # noqa: E402


if __name__ == "__main__":
    main()
