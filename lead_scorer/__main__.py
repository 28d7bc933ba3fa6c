"""
Start the lead scoring API server.

Usage:
    python -m lead_scorer                 # port 8000
    python -m lead_scorer --port 8080
    python -m lead_scorer --reload        # dev mode

Settings come from the environment; a local .env file is loaded first.
"""

import argparse
import uvicorn
from dotenv import load_dotenv


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Lead Scoring API server")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    uvicorn.run("lead_scorer.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
