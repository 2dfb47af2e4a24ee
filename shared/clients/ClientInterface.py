from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import ClientStatusError


class ClientInterface(ABC):
    """Base class of all HTTP backend clients.

    Configuration is read from ``<TYPE>_<ENGINE>_<KEY>`` environment variables,
    e.g. ``RAG_QDRANT_BASE_URL``. Every engine has a base URL and an optional
    API key; engines declare further keys in ``_get_required_config``.

    The underlying ``httpx.AsyncClient`` exists between ``boot()`` and
    ``close()``; ``async with client:`` does both.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None

        self.validate_full_configuration()
        self._base_url: str = self.get_config_val("BASE_URL")
        self._api_key: str = self.get_config_val("API_KEY", default="")

    async def __aenter__(self) -> "ClientInterface":
        if not self.is_booted():
            await self.boot()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every declared configuration key once so that a missing or
        malformed value fails at construction instead of at the first request.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """Lower-case client type, e.g. "embed"."""
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """Lower-case engine name, e.g. "qdrant"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Declares the engine's configuration keys. Engines with further settings
        extend this list.

        Returns:
            list[EnvConfig]: Key, type and default of each setting; a default of None marks a required key.
        """
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    def _get_config_key_name(self, raw_key: str) -> str:
        """E.g. "API_KEY" on the Qdrant RAG client gives "RAG_QDRANT_API_KEY"."""
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads an engine-specific setting.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Fallback if the variable is unset; None makes the key required.
            val_type (str): One of "string", "number", "int", "bool", "list".

        Raises:
            ValueError: If the value is missing without default or invalid, or the type is unknown.
        """
        getters = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "int": self._helper_config.get_int_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in getters:
            raise ValueError(
                f"Unsupported config value type '{val_type}' for env key '{raw_key}' "
                f"in {self.get_client_type().upper()} client '{self.get_engine_name()}'."
            )
        return getters[val_type](self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns:
            dict: The auth header for the configured API key, or {} if none is set.
        """
        pass

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns:
            str: Path answered with 2xx by a healthy backend, e.g. "/healthz".
        """
        pass

    def get_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        return f"{self._get_base_url().rstrip('/')}/{path}" if path else self._get_base_url().rstrip("/")

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Transport override, e.g.
                an ``httpx.MockTransport`` in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Args:
            method: HTTP method.
            content: Raw body; takes precedence over json.
            json: JSON-serialisable body.
            params: URL query parameters.
            endpoint: Path below the base URL.
            additional_headers: Headers merged over the auth header.
            raise_on_error: Raise ClientStatusError on a non-2xx status.

        Raises:
            RuntimeError: If the client has not been booted.
            httpx.HTTPError: On transport failures (connect errors, timeouts, ...).
            ClientStatusError: If raise_on_error is set and the status is not 2xx.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        url = self.get_url(endpoint)
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body = {"content": content} if content is not None else {"json": json} if json is not None else {}

        response = await self._client.request(method, url, headers=headers, params=params, timeout=self.timeout, **body)

        if raise_on_error and not response.is_success:
            self.logging.error("Request to %s failed with status %d: %s", url, response.status_code, response.text[:500])
            raise ClientStatusError(url=url, status_code=response.status_code, body=response.text[:500])
        return response
