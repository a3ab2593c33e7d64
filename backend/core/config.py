import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    database_url: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./pos_inventory.db"
    )
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    # Inventory
    low_stock_default_threshold: float = float(os.getenv("LOW_STOCK_DEFAULT_THRESHOLD", "5"))
    currency: str = os.getenv("CURRENCY", "NPR")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
