import os
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        pool_timeout_secs: float = 3.0,
        transfer_fee_category_id: int = 1,
        log_level: str = "INFO",
    ) -> None:
        self.database_url = database_url
        self.pool_size = pool_size
        self.pool_timeout_secs = pool_timeout_secs
        self.transfer_fee_category_id = transfer_fee_category_id
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("LEDGER_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def load_settings() -> Settings:
    database_url = os.getenv("LEDGER_DATABASE_URL")
    if not database_url:
        database_url = f"sqlite:///{_ensure_data_dir() / 'ledger.db'}"
    pool_size = int(os.getenv("LEDGER_POOL_SIZE", "5"))
    pool_timeout_secs = float(os.getenv("LEDGER_POOL_TIMEOUT_SECS", "3"))
    transfer_fee_category_id = int(os.getenv("LEDGER_TRANSFER_FEE_CATEGORY_ID", "1"))
    log_level = os.getenv("LEDGER_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        pool_size=pool_size,
        pool_timeout_secs=pool_timeout_secs,
        transfer_fee_category_id=transfer_fee_category_id,
        log_level=log_level,
    )
