"""
Tab Prioritizer Backend Server Entry Point

Starts the FastAPI server for the browser extension.

Usage:
    python examples/start_server.py
"""

import sys
from pathlib import Path

# Add src to path so we can import tab_prioritizer
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tab_prioritizer.config import get_settings


def main():
    """Start the FastAPI server."""

    print("=" * 80)
    print("Tab Prioritizer Backend Server")
    print("=" * 80)
    print()

    # Verify configuration
    try:
        settings = get_settings()
        print("✓ Configuration loaded")
        print(f"  - Model: {settings.llm_model}")
        print(f"  - Provider URL: {settings.groq_base_url}")
        print(f"  - Max concurrency: {settings.max_concurrency}")
        print()
    except Exception as e:
        print(f"✗ Configuration error: {e}")
        print()
        print("Copy .env.example to .env and check the values.")
        sys.exit(1)

    if not settings.groq_api_key:
        print("! GROQ_API_KEY not set: tabs will get default scores and domain clusters")
        print()

    # Start server
    print("Starting FastAPI server...")
    print("Server will be available at: http://localhost:8000")
    print("API documentation: http://localhost:8000/docs")
    print()
    print("Press Ctrl+C to stop the server")
    print("=" * 80)
    print()

    import uvicorn
    from tab_prioritizer.server.app import app

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nServer stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"\n\n✗ Server error: {e}")
        sys.exit(1)
