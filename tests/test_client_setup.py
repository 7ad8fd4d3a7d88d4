"""
Client construction, configuration and request-building tests.
"""

from __future__ import annotations

import pytest

from dodgeball_sdk import ApiVersion, Dodgeball, DodgeballConfig, DodgeballMissingParameterError
from dodgeball_sdk.builder import is_present

from conftest import SECRET_KEY


@pytest.fixture
def client():
    with Dodgeball(SECRET_KEY, {"apiUrl": "https://api.example.com", "apiVersion": "v1"}) as c:
        yield c


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_without_secret_key(self):
        with pytest.raises(DodgeballMissingParameterError) as exc_info:
            Dodgeball("")
        assert exc_info.value.parameter_name == "secretKey"
        assert "Missing required parameter: secretKey" in str(exc_info.value)

    def test_without_config(self, monkeypatch):
        monkeypatch.delenv("DODGEBALL_API_URL", raising=False)
        monkeypatch.delenv("DODGEBALL_IS_ENABLED", raising=False)
        with Dodgeball(SECRET_KEY) as c:
            assert c.config.api_url == "https://api.dodgeballhq.com/"
            assert c.config.api_version is ApiVersion.v1
            assert c.is_enabled is True

    def test_with_config_object(self):
        config = DodgeballConfig(api_url="https://sandbox.example.com", is_enabled=False)
        with Dodgeball(SECRET_KEY, config) as c:
            assert c.config is config
            assert c.is_enabled is False

    def test_none_values_in_mapping_use_defaults(self, monkeypatch):
        monkeypatch.delenv("DODGEBALL_IS_ENABLED", raising=False)
        with Dodgeball(SECRET_KEY, {"apiUrl": None, "isEnabled": None}) as c:
            assert c.is_enabled is True


class TestConfig:
    def test_api_url_gets_trailing_slash(self):
        assert DodgeballConfig(api_url="https://a.example.com").api_url == "https://a.example.com/"
        assert DodgeballConfig(apiUrl="https://a.example.com/").api_url == "https://a.example.com/"

    def test_unknown_api_version_normalises(self):
        assert DodgeballConfig(apiVersion="v9").api_version is ApiVersion.v1

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DODGEBALL_API_URL", "https://env.example.com")
        monkeypatch.setenv("DODGEBALL_IS_ENABLED", "false")
        config = DodgeballConfig()
        assert config.api_url == "https://env.example.com/"
        assert config.is_enabled is False

    def test_base_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            DodgeballConfig(base_checkpoint_timeout_ms=0)


# ---------------------------------------------------------------------------
# URLs and headers
# ---------------------------------------------------------------------------

class TestRequestBuilding:
    def test_url_with_endpoint(self, client):
        assert client.construct_api_url("test") == "https://api.example.com/v1/test"

    def test_url_without_endpoint(self, client):
        assert client.construct_api_url() == "https://api.example.com/v1/"

    def test_headers_with_all_params(self, client):
        assert client.construct_api_headers(
            "verification_id", "source_token", "customer_id", "session_id", "request_id"
        ) == {
            "Dodgeball-Secret-Key": "secret_key",
            "Content-Type": "application/json",
            "Dodgeball-Verification-Id": "verification_id",
            "Dodgeball-Source-Token": "source_token",
            "Dodgeball-Customer-Id": "customer_id",
            "Dodgeball-Session-Id": "session_id",
            "Dodgeball-Request-Id": "request_id",
        }

    def test_headers_with_no_params(self, client):
        assert client.construct_api_headers() == {
            "Dodgeball-Secret-Key": "secret_key",
            "Content-Type": "application/json",
        }

    def test_headers_with_some_params(self, client):
        assert client.construct_api_headers("verification_id", "", "customer_id", "") == {
            "Dodgeball-Secret-Key": "secret_key",
            "Content-Type": "application/json",
            "Dodgeball-Verification-Id": "verification_id",
            "Dodgeball-Customer-Id": "customer_id",
        }

    def test_null_and_undefined_are_omitted(self, client):
        headers = client.construct_api_headers("null", "undefined", None, "session_id")
        assert set(headers) == {
            "Dodgeball-Secret-Key", "Content-Type", "Dodgeball-Session-Id",
        }

    @pytest.mark.parametrize("value,expected", [
        ("abc", True), ("", False), (None, False), ("null", False), ("undefined", False),
    ])
    def test_is_present(self, value, expected):
        assert is_present(value) is expected

    def test_create_error_response(self, client):
        r = client.create_error_response(404, "Not found")
        assert not r.success
        assert r.errors[0].code == 404
        assert r.errors[0].message == "Not found"
