"""
Tests for api_factory.py
Logic testing: validation order, registry indexing, retry defaults, builder
"""
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from notifications_sdk.api import (
    EventsApi,
    EventsApiInterface,
    NotificationsApi,
    NotificationsApiInterface,
    SubscriptionsApi,
    SubscriptionsApiInterface,
)
from notifications_sdk.api_factory import API_REGISTRY, ApiFactory, ApiRegistration, build_api_factory
from notifications_sdk.auth import (
    ClientCredentialsFlowTokenProvider,
    PersonalAccessTokenProvider,
    TokenProvider,
)
from notifications_sdk.client import Configuration, TokenProviderConfiguration
from notifications_sdk.config.types import ApiConfiguration
from notifications_sdk.exception_handler import custom_exception_factory
from notifications_sdk.exceptions import (
    ApiNotFoundError,
    ConfigError,
    MissingConfigError,
    NotificationsApiError,
    UriFormatError,
)
from notifications_sdk.retry import RetryConfiguration, RetryPolicy

TOKEN_URL = "https://example.okta.com/oauth2/token"
NOTIFICATIONS_URL = "https://example.lusid.com/notifications"


class UnregisteredApi:
    pass


class TestValidation:
    """Construction-time validation."""

    def test_none_configuration(self):
        with pytest.raises(ConfigError):
            ApiFactory(None)

    # Error Path: malformed token url
    def test_invalid_token_url(self, api_configuration):
        api_configuration.token_url = "xyz"
        with pytest.raises(UriFormatError) as exc_info:
            ApiFactory(api_configuration)
        assert str(exc_info.value) == "Invalid Token Uri: xyz"

    @pytest.mark.parametrize("token_url", [None, "", "   "])
    def test_missing_token_url(self, api_configuration, token_url):
        api_configuration.token_url = token_url
        with pytest.raises(MissingConfigError) as exc_info:
            ApiFactory(api_configuration)
        assert exc_info.value.field == "token_url"
        assert "FBN_TOKEN_URL" in str(exc_info.value)

    # Error Path: malformed notifications url
    def test_invalid_notifications_url(self, api_configuration):
        api_configuration.notifications_url = "xyz"
        with pytest.raises(UriFormatError) as exc_info:
            ApiFactory(api_configuration)
        assert str(exc_info.value) == "Invalid Uri: xyz"

    @pytest.mark.parametrize("notifications_url", [None, "", "   "])
    def test_missing_notifications_url(self, api_configuration, notifications_url):
        api_configuration.notifications_url = notifications_url
        with pytest.raises(MissingConfigError) as exc_info:
            ApiFactory(api_configuration)
        message = str(exc_info.value)
        assert "FBN_NOTIFICATIONS_API_URL" in message
        assert "notificationsUrl" in message
        assert exc_info.value.field == "notifications_url"

    # Decision: token url checked before notifications url
    def test_token_url_checked_first(self, api_configuration):
        api_configuration.token_url = "bad-token"
        api_configuration.notifications_url = "bad-notifications"
        with pytest.raises(UriFormatError, match="Invalid Token Uri: bad-token"):
            ApiFactory(api_configuration)

    # Decision: personal access token skips token url validation
    def test_personal_access_token_ignores_token_url(self):
        config = ApiConfiguration(
            token_url="xyz",
            notifications_url=NOTIFICATIONS_URL,
            personal_access_token="pat",
        )
        factory = ApiFactory(config)

        provider = factory.configuration.token_provider
        assert isinstance(provider, PersonalAccessTokenProvider)
        assert factory.configuration.access_token == "pat"

    def test_personal_access_token_still_validates_notifications_url(self):
        config = ApiConfiguration(notifications_url="xyz", personal_access_token="pat")
        with pytest.raises(UriFormatError, match="Invalid Uri: xyz"):
            ApiFactory(config)

    def test_blank_personal_access_token_uses_client_credentials(self):
        config = ApiConfiguration(
            token_url=TOKEN_URL,
            notifications_url=NOTIFICATIONS_URL,
            client_id="client-id",
            client_secret="client-secret",
            personal_access_token="  ",
        )
        factory = ApiFactory(config)
        assert isinstance(factory.configuration.token_provider, ClientCredentialsFlowTokenProvider)


class TestConfigurationWiring:
    def test_base_path_and_application_header(self, api_configuration):
        factory = ApiFactory(api_configuration)

        assert isinstance(factory.configuration, TokenProviderConfiguration)
        assert factory.configuration.base_path == NOTIFICATIONS_URL
        assert factory.configuration.default_headers["X-LUSID-Application"] == "tests"

    def test_no_application_name_no_header(self, api_configuration):
        api_configuration.application_name = None
        factory = ApiFactory(api_configuration)
        assert "X-LUSID-Application" not in factory.configuration.default_headers

    def test_client_credentials_provider(self, api_configuration):
        factory = ApiFactory(api_configuration)
        provider = factory.configuration.token_provider
        assert isinstance(provider, ClientCredentialsFlowTokenProvider)
        assert provider.token_url == TOKEN_URL


class TestApiLookup:
    """factory.api(T)."""

    @pytest.mark.parametrize(
        "api_type,interface",
        [
            (SubscriptionsApi, SubscriptionsApiInterface),
            (NotificationsApi, NotificationsApiInterface),
            (EventsApi, EventsApiInterface),
        ],
    )
    def test_registered_apis(self, api_configuration, api_type, interface):
        factory = ApiFactory(api_configuration)

        api = factory.api(api_type)

        assert isinstance(api, api_type)
        assert factory.api(interface) is api

    def test_same_instance_every_time(self, api_configuration):
        factory = ApiFactory(api_configuration)
        assert factory.api(SubscriptionsApi) is factory.api(SubscriptionsApi)

    def test_apis_share_client(self, api_configuration):
        factory = ApiFactory(api_configuration)
        clients = {id(factory.api(t).api_client) for t in (SubscriptionsApi, NotificationsApi, EventsApi)}
        assert clients == {id(factory.api_client)}

    def test_custom_exception_factory_installed(self, api_configuration):
        factory = ApiFactory(api_configuration)
        for registration in API_REGISTRY:
            assert factory.api(registration.api_type).exception_factory is custom_exception_factory

    # Error Path: unknown type
    def test_unknown_api(self, api_configuration):
        factory = ApiFactory(api_configuration)
        with pytest.raises(ApiNotFoundError, match="Unable to find api: UnregisteredApi"):
            factory.api(UnregisteredApi)

    def test_separate_factories_do_not_share_instances(self, api_configuration):
        first = ApiFactory(api_configuration)
        second = ApiFactory(api_configuration)
        assert first.api(SubscriptionsApi) is not second.api(SubscriptionsApi)

    def test_index_is_read_only(self, api_configuration):
        factory = ApiFactory(api_configuration)
        with pytest.raises(TypeError):
            factory.apis[UnregisteredApi] = None

    def test_custom_registry(self, api_configuration):
        registry = (ApiRegistration(EventsApi, EventsApiInterface, EventsApi),)
        factory = ApiFactory(api_configuration, registry=registry)

        assert isinstance(factory.api(EventsApi), EventsApi)
        with pytest.raises(ApiNotFoundError):
            factory.api(SubscriptionsApi)

    def test_registration_creating_wrong_type(self, api_configuration):
        registry = (ApiRegistration(EventsApi, EventsApiInterface, SubscriptionsApi),)
        with pytest.raises(TypeError, match="Unable to create type EventsApi"):
            ApiFactory(api_configuration, registry=registry)

    # Decision: the accessor keeps whatever exception factory its create hook chose
    def test_registration_exception_factory_kept(self, api_configuration):
        def own_factory(method_name, response):
            return None

        registry = (
            ApiRegistration(EventsApi, EventsApiInterface, lambda client, _: EventsApi(client, own_factory)),
        )
        factory = ApiFactory(api_configuration, registry=registry)

        assert factory.api(EventsApi).exception_factory is own_factory


class TestRetryDefaults:
    """Process-wide retry policies."""

    def test_installs_defaults(self, api_configuration):
        assert RetryConfiguration.retry_policy is None
        ApiFactory(api_configuration)
        assert RetryConfiguration.retry_policy is not None
        assert RetryConfiguration.async_retry_policy is not None

    # State: caller policy is never overwritten
    def test_keeps_caller_policy(self, api_configuration):
        custom = RetryPolicy(name="custom")
        RetryConfiguration.set_retry_policy(custom)

        ApiFactory(api_configuration)
        ApiFactory(api_configuration)

        assert RetryConfiguration.retry_policy is custom

    def test_second_factory_keeps_first_defaults(self, api_configuration):
        ApiFactory(api_configuration)
        first = RetryConfiguration.retry_policy
        ApiFactory(api_configuration)
        assert RetryConfiguration.retry_policy is first


class TestFromConfiguration:
    def test_uses_configuration_as_given(self):
        configuration = Configuration(base_path="https://other.lusid.com/notifications", access_token="t")
        factory = ApiFactory.from_configuration(configuration)

        api = factory.api(SubscriptionsApi)
        assert api.configuration is configuration
        assert RetryConfiguration.retry_policy is not None

    def test_none_configuration(self):
        with pytest.raises(ConfigError):
            ApiFactory.from_configuration(None)


class TestEndToEnd:
    """Factory-built accessors against mocked endpoints."""

    @respx.mock
    def test_client_credentials_call(self, api_configuration, fast_retry_policy):
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        )
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"values": []})

        with ApiFactory(
            api_configuration,
            retry_policy=fast_retry_policy,
            transport=httpx.MockTransport(handler),
        ) as factory:
            api = factory.api(SubscriptionsApiInterface)
            assert api.list_subscriptions() == {"values": []}
            api.list_subscriptions()

        assert token_route.call_count == 1
        assert seen[0].headers["Authorization"] == "Bearer token-1"
        assert seen[0].headers["X-LUSID-Application"] == "tests"
        assert str(seen[0].url) == f"{NOTIFICATIONS_URL}/api/subscriptions"

    def test_error_envelope_surfaces(self):
        config = ApiConfiguration(notifications_url=NOTIFICATIONS_URL, personal_access_token="pat")

        def handler(request):
            return httpx.Response(400, json={"code": 101, "title": "Invalid subscription"})

        factory = ApiFactory(config, transport=httpx.MockTransport(handler))
        with pytest.raises(NotificationsApiError) as exc_info:
            factory.api(SubscriptionsApi).create_subscription({"id": {}})
        assert exc_info.value.code == 101
        factory.close()

    @pytest.mark.asyncio
    async def test_async_call(self):
        config = ApiConfiguration(notifications_url=NOTIFICATIONS_URL, personal_access_token="pat")
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "evt"})

        async with ApiFactory(config, async_transport=httpx.MockTransport(handler)) as factory:
            result = await factory.api(EventsApi).trigger_manual_event_async({"body": {}})

        assert result == {"id": "evt"}
        assert seen[0].headers["Authorization"] == "Bearer pat"


class TestLifecycle:
    """Which resources close and aclose release."""

    def test_close_releases_derived_provider(self, api_configuration):
        factory = ApiFactory(api_configuration)
        provider = factory.configuration.token_provider
        provider.close = MagicMock()

        factory.close()

        provider.close.assert_called_once()

    # State: an injected provider belongs to the caller
    def test_close_leaves_injected_provider_open(self, api_configuration):
        provider = MagicMock(spec=TokenProvider)
        factory = ApiFactory(api_configuration, token_provider=provider)

        factory.close()

        provider.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_provider_open(self, api_configuration):
        provider = MagicMock(spec=TokenProvider)
        provider.aclose = AsyncMock()
        factory = ApiFactory(api_configuration, token_provider=provider)

        await factory.aclose()

        provider.aclose.assert_not_awaited()
        provider.close.assert_not_called()


class TestBuildApiFactory:
    def test_from_secrets_file(self, clean_env, dummy_secrets_path):
        factory = build_api_factory(dummy_secrets_path, env={})

        assert factory.configuration.base_path == NOTIFICATIONS_URL
        assert factory.configuration.default_headers["X-LUSID-Application"] == "dummy-app"
        assert isinstance(factory.api(SubscriptionsApi), SubscriptionsApi)

    def test_environment_overrides_file(self, clean_env, dummy_secrets_path):
        factory = build_api_factory(
            dummy_secrets_path, env={"FBN_NOTIFICATIONS_API_URL": "https://env.lusid.com/notifications"}
        )
        assert factory.configuration.base_path == "https://env.lusid.com/notifications"

    def test_missing_configuration(self, clean_env):
        with pytest.raises(MissingConfigError):
            build_api_factory(env={})

    def test_factory_kwargs_forwarded(self, clean_env, dummy_secrets_path, fast_retry_policy):
        factory = build_api_factory(dummy_secrets_path, env={}, retry_policy=fast_retry_policy)
        assert factory.api_client._retry_policy is fast_retry_policy
