import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from abstractions.endpoint_source import EndpointSource
from config.config import Config
from contracts.fast_config import FastConfig
from core.errors import EndpointSourceError, InvalidToken

logger = logging.getLogger(__name__)


class FastApiClient(EndpointSource):
    """
    Loads speed test targets and client metadata from api.fast.com.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Optional[str] = None,
        url_count: Optional[int] = None,
        user_agent: Optional[str] = None,
        api_url: Optional[str] = None,
    ):
        self.client = client
        self.token = token or Config.FAST_API_TOKEN
        self.url_count = url_count or Config.FAST_URL_COUNT
        self.user_agent = user_agent or Config.FAST_USER_AGENT
        self.api_url = api_url or Config.FAST_API_URL

    def build_request(self) -> httpx.Request:
        params = {
            "https": "true",
            "token": self.token,
            "urlCount": str(self.url_count),
        }
        return self.client.build_request(
            "GET",
            self.api_url,
            params=params,
            headers={"User-Agent": self.user_agent},
        )

    async def load(self) -> FastConfig:
        request = self.build_request()
        logger.info(f"Retrieving fast.com configuration from {request.url.host}")
        try:
            resp = await self.client.send(request)
        except httpx.HTTPError as e:
            raise EndpointSourceError(f"configuration request failed: {e!r}") from e

        if resp.status_code == 403:
            raise InvalidToken("invalid API token")
        if resp.status_code != 200:
            raise EndpointSourceError(f"non-200 status code: {resp.status_code}")

        try:
            config = FastConfig.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise EndpointSourceError(f"malformed configuration payload: {e}") from e
        logger.info(
            f"Loaded {len(config.targets)} targets for client {config.client.ip or '?'}"
        )
        return config
