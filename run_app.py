#!/usr/bin/env python3
"""
Wellness Center Backend Runner
==============================

Runs the API server or the Celery processes.

Usage:
    python run_app.py                    # API in development mode (default)
    python run_app.py --mode prod        # API without auto-reload
    python run_app.py --mode worker      # Celery worker
    python run_app.py --mode beat        # Celery beat (appointment auto-completion)
    python run_app.py --port 8001        # Custom port
    python run_app.py --host 127.0.0.1   # Custom host
"""

import argparse
import os
import subprocess
import sys


def print_banner():
    """Print application banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║              Wellness Center Backend                  ║
╚═══════════════════════════════════════════════════════╝
    """
    print(banner)


def check_environment():
    """Report missing local configuration"""
    print("\n🔍 Checking environment...")

    if os.path.exists(".env"):
        print("✅ .env file found")
    else:
        print("⚠️  .env file not found, using defaults (SECRET_KEY must be set)")

    return True


def run_api(host="0.0.0.0", port=8000, reload=True):
    """Run the FastAPI application"""
    print(f"\n🚀 Starting API on {host}:{port}")
    print(f"📖 API Docs: http://{host}:{port}/api/docs")
    print("\n" + "=" * 50)

    import uvicorn
    uvicorn.run(
        "wellness.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


def run_celery(command):
    """Run a Celery worker or beat process"""
    print(f"\n⚙️  Starting Celery {command}...")
    args = [sys.executable, "-m", "celery", "-A", "wellness.core.celery_app:celery_app", command, "-l", "info"]
    if command == "worker":
        args += ["-Q", "default,appointments"]

    try:
        subprocess.run(args, check=True)
    except subprocess.CalledProcessError as e:
        print(f"❌ Celery {command} exited with code {e.returncode}")
        return e.returncode
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Wellness Center Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--mode",
        choices=["dev", "prod", "worker", "beat"],
        default="dev",
        help="What to run (default: dev)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )

    args = parser.parse_args()

    print_banner()

    if not check_environment():
        return 1

    if args.mode in ("worker", "beat"):
        return run_celery(args.mode)

    run_api(args.host, args.port, reload=args.mode == "dev")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)
