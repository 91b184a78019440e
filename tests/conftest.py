"""
Shared fixtures for notifications_sdk tests.
"""
from pathlib import Path

import pytest

from notifications_sdk.config.types import ApiConfiguration
from notifications_sdk.retry import AsyncRetryPolicy, RetryConfig, RetryConfiguration, RetryPolicy

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FBN_ENV_VARS = (
    "FBN_TOKEN_URL",
    "FBN_NOTIFICATIONS_API_URL",
    "FBN_CLIENT_ID",
    "FBN_CLIENT_SECRET",
    "FBN_TOKEN_SCOPE",
    "FBN_PERSONAL_ACCESS_TOKEN",
    "FBN_APP_NAME",
    "FBN_SECRETS_PATH",
    "FBN_PROXY_ADDRESS",
    "FBN_PROXY_USERNAME",
    "FBN_PROXY_PASSWORD",
    "FBN_VERIFY_SSL",
    "FBN_CA_CERT_PATH",
    "SSL_CERT_VERIFY",
)


@pytest.fixture(autouse=True)
def reset_retry_configuration():
    """Each test starts and ends with no process-wide retry policy."""
    RetryConfiguration.reset()
    yield
    RetryConfiguration.reset()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove FBN_* variables and run from an empty directory."""
    for name in FBN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def dummy_secrets_path():
    """Path to a secrets file with client-credentials settings."""
    return str(FIXTURES_DIR / "dummy-test-secrets.json")


@pytest.fixture
def api_configuration():
    """Valid client-credentials ApiConfiguration."""
    return ApiConfiguration(
        token_url="https://example.okta.com/oauth2/token",
        notifications_url="https://example.lusid.com/notifications",
        client_id="client-id",
        client_secret="client-secret",
        application_name="tests",
    )


@pytest.fixture
def no_delay_retry_config():
    """RetryConfig that never sleeps."""
    return RetryConfig(max_retries=2, base_delay_seconds=0.0, max_delay_seconds=0.0, jitter_factor=0.0)


@pytest.fixture
def fast_retry_policy(no_delay_retry_config):
    return RetryPolicy(no_delay_retry_config, name="fast")


@pytest.fixture
def fast_async_retry_policy(no_delay_retry_config):
    return AsyncRetryPolicy(no_delay_retry_config, name="fast")
