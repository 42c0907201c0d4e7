"""
Prospect Engine - Main Entry Point
==================================
Run this file to start the FastAPI server.

Usage:
    python main.py                    # Start server on port 8000
    python main.py --port 8080        # Start server on custom port
    python main.py --reload           # Start with auto-reload (dev mode)

API Documentation:
    http://localhost:8000/docs        # Swagger UI
    http://localhost:8000/redoc       # ReDoc
"""

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from prospect_engine.config.settings import LOG_LEVEL, SEARCH_CONFIG


def main():
    parser = argparse.ArgumentParser(description="Prospect Engine API Server")
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind the server to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    search_status = "Enabled" if SEARCH_CONFIG.get("api_key") else "Disabled (no TAVILY_API_KEY)"
    print(f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║                     PROSPECT ENGINE                          ║
    ║                      Version 1.0.0                           ║
    ╠══════════════════════════════════════════════════════════════╣
    ║  Server:  http://{args.host}:{args.port}
    ║  Docs:    http://localhost:{args.port}/docs
    ║  Search:  {search_status}
    ╚══════════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "prospect_engine.api.endpoints:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
