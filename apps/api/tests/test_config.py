import pytest

from app.core.config import Settings


def base_settings(**overrides: object) -> Settings:
    defaults: dict[str, object] = {
        "storage_backend": "neo4j",
        "neo4j_uri": "bolt://localhost:7687",
        "neo4j_user": "neo4j",
        "neo4j_password": "password",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def test_neo4j_backend_requires_credentials():
    with pytest.raises(ValueError, match="neo4j_settings_required_for_neo4j_backend"):
        base_settings(neo4j_password=None)


def test_production_requires_persistent_storage():
    with pytest.raises(ValueError, match="persistent_storage_required_in_production"):
        base_settings(app_environment="production", storage_backend="memory")


def test_production_allows_neo4j_storage():
    settings = base_settings(app_environment="production")
    assert settings.storage_backend == "neo4j"


def test_pattern_limits_must_be_positive():
    with pytest.raises(ValueError, match="pattern_timeout_seconds_must_be_positive"):
        base_settings(pattern_timeout_seconds=0)
    with pytest.raises(ValueError, match="max_pattern_length_must_be_positive"):
        base_settings(max_pattern_length=0)


def test_document_size_limit_must_be_positive():
    with pytest.raises(ValueError, match="max_document_chars_must_be_positive"):
        base_settings(max_document_chars=0)
