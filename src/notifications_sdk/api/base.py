"""
Base class for API accessors.
"""
from typing import Any, Dict, Mapping, Optional

from ..client.api_client import ApiClient, QueryParams
from ..client.configuration import Configuration
from ..exception_handler import ExceptionFactory, default_exception_factory


class ApiAccessor:
    """
    Common plumbing for the accessors: holds the shared ApiClient and the
    exception factory applied to every response.

    Accepts either an ApiClient or a bare Configuration, in which case a
    private ApiClient is built around it.
    """

    def __init__(
        self,
        api_client: Optional[ApiClient] = None,
        exception_factory: Optional[ExceptionFactory] = None,
        configuration: Optional[Configuration] = None,
    ):
        if api_client is None:
            api_client = ApiClient(configuration or Configuration())
        self.api_client = api_client
        self._exception_factory = exception_factory or default_exception_factory

    @property
    def exception_factory(self) -> ExceptionFactory:
        return self._exception_factory

    @exception_factory.setter
    def exception_factory(self, value: ExceptionFactory) -> None:
        self._exception_factory = value

    @property
    def configuration(self) -> Configuration:
        return self.api_client.configuration

    def _call(
        self,
        method: str,
        path: str,
        method_name: str,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        query: Optional[QueryParams] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return self.api_client.call_api(
            method,
            path,
            method_name=method_name,
            path_params=path_params,
            query=query,
            body=body,
            headers=headers,
            timeout=timeout,
            exception_factory=self._exception_factory,
        )

    async def _call_async(
        self,
        method: str,
        path: str,
        method_name: str,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        query: Optional[QueryParams] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return await self.api_client.call_api_async(
            method,
            path,
            method_name=method_name,
            path_params=path_params,
            query=query,
            body=body,
            headers=headers,
            timeout=timeout,
            exception_factory=self._exception_factory,
        )


def require(value: Any, name: str, method_name: str) -> None:
    """Raise ValueError when a required argument is missing."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Missing the required parameter '{name}' when calling {method_name}")
