#!/usr/bin/env python3
"""
Health check script for container health probes.

Usage:
    python scripts/healthcheck.py [host] [port]

Exits 0 on success, 1 on failure.
"""

import sys
import urllib.error
import urllib.request


def check_viewer(host="localhost", port=8000):
    """Check the viewer app is responding."""
    try:
        url = f"http://{host}:{port}/healthz"
        req = urllib.request.urlopen(url, timeout=5)
        return req.status == 200
    except (urllib.error.URLError, OSError):
        return False


def main():
    host = sys.argv[1] if len(sys.argv) > 1 else "localhost"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 8000

    if check_viewer(host, port):
        print("viewer: healthy")
        sys.exit(0)
    else:
        print("viewer: unhealthy", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
