# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "BGBRIDGE_APP_NAME": "App display name (default: bgbridge).",
    "BGBRIDGE_LOG_LEVEL": "Console logging level (default: INFO).",
    "BGBRIDGE_DATA_DIR": "Local data directory for logs (default: .local/bgbridge).",
    "BGBRIDGE_DEBUG": "Strict mode: unknown task identifiers raise instead of being logged (true/false).",
    # Identifiers
    "BGBRIDGE_CHANNEL_NAME": "Application channel name (default: com.example.appAccelerometer/channel).",
    "BGBRIDGE_REFRESH_IDENTIFIER": "Refresh task identifier (default: com.example.appAccelerometer.refresh).",
    "BGBRIDGE_PROCESSING_IDENTIFIER": (
        "Processing task identifier (default: com.example.appAccelerometer.processing)."
    ),
    # Task defaults
    "BGBRIDGE_REFRESH_DELAY_SECONDS": "Minimum delay before the next refresh window (default: 900).",
    "BGBRIDGE_PROCESSING_DELAY_SECONDS": "Minimum delay before the next processing window (default: 1800).",
    "BGBRIDGE_PROCESSING_REQUIRES_NETWORK": "Processing requests require network (default: false).",
    "BGBRIDGE_PROCESSING_REQUIRES_POWER": "Processing requests require external power (default: false).",
    # Legacy path
    "BGBRIDGE_LEGACY_MODE": "Simulate a facility without scheduled tasks (default: false).",
    "BGBRIDGE_LEGACY_FETCH_TIMEOUT_SECONDS": "Reply timeout for legacy fetches (default: 30).",
    # Simulator
    "BGBRIDGE_WINDOW_BUDGET_SECONDS": "Seconds before a simulated window expires (default: 30).",
    "BGBRIDGE_POLL_INTERVAL_SECONDS": "Facility polling interval (default: 1).",
    "BGBRIDGE_TIME_SCALE": "Speed-up factor for scheduling delays (default: 1.0).",
    "BGBRIDGE_AUTO_START": "Send registerAutoStart on startup (default: true).",
}
