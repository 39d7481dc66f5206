"""Settings validation and derived values."""

import pytest
from pydantic import ValidationError

from workdesk.core.config import Settings


def make(**overrides):
    values = {
        "upstream_instance": "acme.service-now.com",
        "upstream_username": "svc",
        "upstream_password": "secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_bare_host_gets_https_scheme():
    assert make().upstream_base_url == "https://acme.service-now.com"


def test_full_url_used_as_is():
    assert make(upstream_instance="http://localhost:8080/").upstream_base_url == "http://localhost:8080"


def test_origins_split_and_trimmed():
    settings = make(allowed_origins=" http://a.test , http://b.test,,")
    assert settings.origins == ["http://a.test", "http://b.test"]


def test_password_is_secret():
    settings = make()
    assert "secret" not in repr(settings)
    assert settings.upstream_password.get_secret_value() == "secret"


@pytest.mark.parametrize(
    "overrides",
    [
        {"upstream_instance": "  "},
        {"upstream_username": ""},
        {"upstream_password": ""},
        {"store_backend": "memcached"},
        {"upstream_retries": -1},
    ],
)
def test_invalid_settings_rejected(overrides):
    with pytest.raises(ValidationError):
        make(**overrides)
