import pytest
from sqlalchemy import text
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import StaticPool

from config import Settings, load_settings
from database import make_engine
from errors import InternalError, classify_storage_error


def test_load_settings_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("LEDGER_DATABASE_URL", "postgresql+psycopg://ledger@db/ledger")
    monkeypatch.setenv("LEDGER_POOL_SIZE", "12")
    monkeypatch.setenv("LEDGER_POOL_TIMEOUT_SECS", "1.5")
    monkeypatch.setenv("LEDGER_TRANSFER_FEE_CATEGORY_ID", "9")
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.database_url == "postgresql+psycopg://ledger@db/ledger"
    assert settings.pool_size == 12
    assert settings.pool_timeout_secs == 1.5
    assert settings.transfer_fee_category_id == 9
    assert settings.log_level == "DEBUG"


def test_default_database_lives_in_data_dir(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
    monkeypatch.setenv("LEDGER_DATA_DIR", str(tmp_path / "data"))

    settings = load_settings()

    assert settings.database_url == f"sqlite:///{tmp_path / 'data' / 'ledger.db'}"
    assert (tmp_path / "data").is_dir()
    assert settings.pool_size == 5
    assert settings.transfer_fee_category_id == 1


def test_memory_engine_shares_one_connection_with_foreign_keys() -> None:
    engine = make_engine(Settings(database_url="sqlite+pysqlite:///:memory:"))

    assert isinstance(engine.pool, StaticPool)
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1


def test_file_engine_uses_configured_pool(tmp_path) -> None:
    engine = make_engine(
        Settings(
            database_url=f"sqlite:///{tmp_path / 'ledger.db'}",
            pool_size=3,
            pool_timeout_secs=3,
        )
    )

    assert engine.pool.size() == 3
    assert engine.pool.timeout() == 3
    engine.dispose()


def test_exhausted_pool_fails_fast(tmp_path) -> None:
    engine = make_engine(
        Settings(
            database_url=f"sqlite:///{tmp_path / 'ledger.db'}",
            pool_size=1,
            pool_timeout_secs=0.1,
        )
    )

    with engine.connect():
        with pytest.raises(PoolTimeoutError) as excinfo:
            engine.connect()

    assert isinstance(classify_storage_error(excinfo.value), InternalError)
    engine.dispose()
