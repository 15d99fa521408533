"""Pytest configuration and fixtures for the API and service layer tests."""

import os

# Must be set before servit.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from servit.database import Base, get_db
from servit.main import app
from servit.models import Ingredient, Location, MenuItem, Organization, Recipe, RecipeLine, User
from servit.utils.security import create_access_token

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared across sessions through a single connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def tenants(db):
    """Two organizations, one location and a user per role in org-1."""
    db.add_all([
        Organization(id=ORG_ID, name="Mozza Group", slug="mozza"),
        Organization(id=OTHER_ORG_ID, name="Other Group", slug="other"),
    ])
    db.flush()
    db.add(Location(id="loc-1", organization_id=ORG_ID, name="Queen West", code="QW"))
    db.flush()
    db.add_all([
        User(id="u-admin", organization_id=ORG_ID, email="admin@servit.test", name="Ada Admin", role="ADMIN"),
        User(id="u-corp", organization_id=ORG_ID, email="corp@servit.test", name="Cory Corporate", role="CORPORATE"),
        User(id="u-chef", organization_id=ORG_ID, email="chef@servit.test", name="Cam Culinary", role="CULINARY"),
        User(
            id="u-server",
            organization_id=ORG_ID,
            email="server@servit.test",
            name="Sam Server",
            role="SERVER",
            location_id="loc-1",
            server_code="S01",
        ),
        User(id="u-other", organization_id=OTHER_ORG_ID, email="other@servit.test", name="Oz Other", role="ADMIN"),
    ])
    db.commit()
    return db


@pytest.fixture(scope="function")
def catalog(tenants):
    """Flour, butter and eggs; a dough recipe; a pizza menu item on it."""
    db = tenants
    db.add_all([
        Ingredient(id="flour", organization_id=ORG_ID, name="Flour", unit="g", allergens=["Wheat"]),
        Ingredient(id="butter", organization_id=ORG_ID, name="Butter", unit="g", allergens=["Dairy"]),
        Ingredient(id="eggs", organization_id=ORG_ID, name="Eggs", unit="pcs", allergens=["Egg"]),
    ])
    db.add(Recipe(
        id="dough",
        organization_id=ORG_ID,
        name="Pizza Dough",
        yield_qty=4,
        components=[],
        lines=[
            RecipeLine(position=0, ingredient_id="flour", qty=500, unit="g"),
            RecipeLine(position=1, ingredient_id="butter", qty=50, unit="g"),
        ],
    ))
    db.add(MenuItem(
        id="margherita",
        organization_id=ORG_ID,
        name="Margherita",
        type="Line Station",
        station="Mozza",
        recipe_id="dough",
    ))
    db.commit()
    return db


@pytest.fixture(scope="function")
def client(session_factory, tenants):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(user_id: str, role: str, organization_id: str = ORG_ID, location_id: str = None) -> str:
    return create_access_token({
        "sub": user_id,
        "email": f"{user_id}@servit.test",
        "role": role,
        "organization_id": organization_id,
        "location_id": location_id,
    })


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('u-admin', 'ADMIN')}"}


@pytest.fixture
def corporate_headers():
    return {"Authorization": f"Bearer {make_token('u-corp', 'CORPORATE')}"}


@pytest.fixture
def culinary_headers():
    return {"Authorization": f"Bearer {make_token('u-chef', 'CULINARY')}"}


@pytest.fixture
def server_headers():
    return {"Authorization": f"Bearer {make_token('u-server', 'SERVER', location_id='loc-1')}"}


@pytest.fixture
def other_org_headers():
    return {"Authorization": f"Bearer {make_token('u-other', 'ADMIN', organization_id=OTHER_ORG_ID)}"}
