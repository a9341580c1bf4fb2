import pytest

from fakes import FakeFirestore
from favorites.adapter import FavoritesStoreAdapter
from models.favorites import User
from repos.favorites_repo import FavoritesRepository
from repos.share_repo import ShareRepository


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def favorites_repo(db):
    return FavoritesRepository(db=db)


@pytest.fixture
def share_repo(db):
    return ShareRepository(db=db)


@pytest.fixture
def adapter(favorites_repo):
    return FavoritesStoreAdapter(repo=favorites_repo, max_items=15, subscribe_attempts=3, sleep=lambda s: None)


@pytest.fixture
def user():
    return User(uid="u1", display_name="Mei", email="mei@example.com")
