import pytest

from catalog.config import Settings
from catalog.database import clean_database_url, engine_options


@pytest.mark.parametrize("url,expected", [
    ("postgres://u:p@db:5432/catalog", "postgresql+psycopg2://u:p@db:5432/catalog"),
    ("postgresql://u:p@db:5432/catalog", "postgresql+psycopg2://u:p@db:5432/catalog"),
    ("postgresql+psycopg2://u:p@db:5432/catalog", "postgresql+psycopg2://u:p@db:5432/catalog"),
    ("sqlite:///./catalog.db", "sqlite:///./catalog.db"),
])
def test_clean_database_url_pins_psycopg2(url, expected):
    assert clean_database_url(url) == expected


def test_default_url_uses_declared_driver():
    assert Settings.model_fields["database_url"].default.startswith("postgresql+psycopg2://")


def test_engine_options():
    assert engine_options("sqlite://") == {"connect_args": {"check_same_thread": False}}
    assert engine_options("postgresql+psycopg2://db/catalog")["pool_pre_ping"] is True
