from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tholvi.adapters.sqlite.migrator import SQLiteMigrator
from tholvi.adapters.sqlite.repos import SQLiteUserRepo
from tholvi.api.auth_utils import create_access_token, get_password_hash
from tholvi.api.deps import Settings, get_settings
from tholvi.api.main import app
from tholvi.domain.entities import UserAccount
from tholvi.rules.loader import load_rules
from tholvi.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def rules() -> Rules:
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def db_path(data_dir: Path) -> str:
    """A migrated, empty database."""
    path = str(data_dir / "tholvi.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def settings(data_dir: Path, db_path: str) -> Settings:
    s = Settings()
    s.base_dir = PROJECT_ROOT
    s.data_dir = data_dir
    s.db_path = db_path
    s.files_dir = data_dir / "files"
    s.public_base_url = "/files"
    s.rules_path = PROJECT_ROOT / "rules.yaml"
    s.migrations_dir = PROJECT_ROOT / "migrations"
    return s


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_repo(db_path: str) -> SQLiteUserRepo:
    return SQLiteUserRepo(db_path)


@pytest.fixture
def make_user(user_repo: SQLiteUserRepo):
    """Insert an account and return it with an auth header for it."""

    def _make(
        email: str = "kasun@example.com",
        display_name: str = "Kasun",
        password: str = "secret123",
        **fields,
    ) -> tuple[UserAccount, dict[str, str]]:
        user = UserAccount(
            email=email,
            display_name=display_name,
            password_hash=get_password_hash(password),
            **fields,
        )
        user_repo.save(user)
        token = create_access_token({"sub": str(user.id)})
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def member(make_user) -> tuple[UserAccount, dict[str, str]]:
    return make_user()


@pytest.fixture
def admin(make_user) -> tuple[UserAccount, dict[str, str]]:
    return make_user(email="admin@example.com", display_name="Admin", role="admin")
