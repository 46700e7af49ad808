"""
Relay Dashboard Launcher

Starts the DLQ monitoring dashboard for the HL7 relay.

This service provides:
- Live relay stats, health and failed-message list (polled every 5s)
- Client-side filtering of the dead-letter queue
- Retry of individual failed messages

Usage:
------
python scripts/run_dashboard.py

Environment Variables:
----------------------
RELAY_API_BASE_URL: Relay web API base URL (default: http://127.0.0.1:5678)
RELAY_DASHBOARD_REFRESH_SECONDS: Seconds between refresh cycles (default: 5)
RELAY_DASHBOARD_REQUEST_TIMEOUT: Per-request timeout in seconds (default: none)
RELAY_DASHBOARD_PORT: Flask server port (default: 5080)
RELAY_DASHBOARD_BIND_HOST: Flask bind address (default: 0.0.0.0)
RELAY_DASHBOARD_DEBUG: Enable Flask debug mode (default: false)
RELAY_DASHBOARD_LOG_LEVEL: debug, info, warn or error (default: info)
RELAY_DASHBOARD_LOG_FILE: Optional log file path
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relay_dashboard import config
from relay_dashboard.service import create_app
from shared.logging_config import setup_logging


def main():
    """Main entrypoint for the dashboard service."""
    logger = setup_logging("dashboard", level=config.LOG_LEVEL, log_file=config.LOG_FILE)

    print("=" * 60)
    print("HL7 Relay Dashboard")
    print("=" * 60)
    print(f"Relay API: {config.RELAY_API_BASE_URL}")
    print(f"Bind Address: {config.GUI_BIND_HOST}:{config.GUI_PORT}")
    print(f"Refresh Interval: {config.REFRESH_INTERVAL_SECONDS}s")
    print(f"Debug Mode: {config.GUI_DEBUG}")

    app = create_app(start=True)

    base = f"http://{config.GUI_BIND_HOST}:{config.GUI_PORT}"
    print("\nEndpoints:")
    print(f"  • View state: {base}/api/view")
    print(f"  • Filters:    {base}/api/filters (POST / DELETE)")
    print(f"  • Refresh:    {base}/api/refresh (POST)")
    print(f"  • Retry:      {base}/api/messages/<id>/retry (POST)")
    print("\nPress Ctrl+C to stop\n")

    try:
        app.run(
            host=config.GUI_BIND_HOST,
            port=config.GUI_PORT,
            debug=config.GUI_DEBUG,
            use_reloader=False  # Avoid a second sync thread
        )
    except KeyboardInterrupt:
        print("\nShutting down dashboard...")
        return 0
    except OSError as e:
        logger.error(f"Error running dashboard: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
