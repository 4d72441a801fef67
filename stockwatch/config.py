"""
Service configuration.

All settings are read from environment variables:
- PRODUCTS_DATA_FILE: JSON file with per-branch product snapshots
- SOURCE_TIMEOUT: Timeout in seconds for one product source fetch (default: 2.0)
- SOURCE_RETRIES: Extra fetch attempts after the first failure (default: 2)
- NOTIFICATION_LOG_SIZE: Number of recent stock notifications kept in memory (default: 50)
- LOG_LEVEL: Root logging level (default: INFO)
"""

import os

DEFAULT_DATA_FILE = os.path.join(os.path.dirname(__file__), "data", "products.json")


class Settings:
    """
    Environment backed settings.
    Values are read once, when the instance is created.
    """

    def __init__(self):
        self.products_data_file = os.getenv("PRODUCTS_DATA_FILE", DEFAULT_DATA_FILE)
        self.source_timeout = float(os.getenv("SOURCE_TIMEOUT", "2.0"))
        self.source_retries = int(os.getenv("SOURCE_RETRIES", "2"))
        self.notification_log_size = int(os.getenv("NOTIFICATION_LOG_SIZE", "50"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
