import os

# Keep imports of listing_qa.database off the deployment database.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import listing_qa.models  # noqa: F401
from listing_qa.database import build_engine, get_db
from listing_qa.models.base import Base
from listing_qa.models.listing import Listing
from listing_qa.models.seller_tier import TierLevel
from listing_qa.services.tier_resolver import set_seller_tier

STANDARD_SELLER = "seller-standard"
TRUSTED_SELLER = "seller-trusted"


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'listing_qa.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_listing(db):
    def _make(seller_id: str = STANDARD_SELLER, name: str = "Test listing", is_active: bool = True) -> str:
        listing = Listing(seller_id=seller_id, name=name, is_active=is_active)
        db.add(listing)
        db.commit()
        return listing.id

    return _make


@pytest.fixture
def trusted_seller(db):
    set_seller_tier(db, TRUSTED_SELLER, TierLevel.TRUSTED_BRAND, True)
    return TRUSTED_SELLER


@pytest.fixture
def client(session_factory):
    from listing_qa.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
