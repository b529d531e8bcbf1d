import pytest

from config import Settings
from database import Base, make_engine, make_session_factory
from models import Category, ParentCategory, Tag, Wallet

MEMORY_URL = "sqlite+pysqlite:///:memory:"


def make_session():
    engine = make_engine(Settings(database_url=MEMORY_URL))
    Base.metadata.create_all(engine)
    return make_session_factory(engine)()


@pytest.fixture
def session():
    session = make_session()
    yield session
    session.close()


def seed_ledger(session) -> None:
    """Reference data every ledger test books against.

    Category 1 is the reserved transfer-fee category.
    """
    session.add_all(
        [
            ParentCategory(id=1, name="Living"),
            ParentCategory(id=2, name="Leisure"),
            Wallet(id=1, name="Cash"),
            Wallet(id=2, name="bank"),
            Wallet(id=3, name="Savings"),
            Tag(id=1, name="weekly", is_important=False),
            Tag(id=2, name="Urgent", is_important=True),
            Tag(id=3, name="family", is_important=False),
            Tag(id=4, name="Bills", is_important=True),
        ]
    )
    session.flush()
    session.add_all(
        [
            Category(id=1, name="Fees", parent_category_id=1),
            Category(id=2, name="Groceries", parent_category_id=1),
            Category(id=3, name="Rent", parent_category_id=1),
            Category(id=4, name="movies", parent_category_id=2),
            Category(id=5, name="Travel", parent_category_id=2),
        ]
    )
    session.commit()


@pytest.fixture
def ledger(session):
    seed_ledger(session)
    return session
