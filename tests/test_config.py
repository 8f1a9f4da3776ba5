import storespark.main
from storespark.config import Settings


def test_cors_origins_comma_separated(monkeypatch):
    monkeypatch.setenv("STORESPARK_CORS_ORIGINS", "http://a.com, http://b.com")
    assert Settings().cors_origins == ["http://a.com", "http://b.com"]


def test_cors_origins_json_list(monkeypatch):
    monkeypatch.setenv("STORESPARK_CORS_ORIGINS", '["http://a.com"]')
    assert Settings().cors_origins == ["http://a.com"]


def test_cors_origins_default():
    assert Settings(_env_file=None).cors_origins == ["*"]


def test_importing_main_builds_no_app():
    assert not hasattr(storespark.main, "app")
