"""DI provider for HTTP infrastructure."""

from collections.abc import AsyncIterator

import httpx
from dishka import provide

from medisys.config import Config
from medisys.domain.upload.port.upload_api import UploadApi
from medisys.infrastructure.http.client import HttpUploadApi
from medisys.util.di.base import Provider
from medisys.util.di.scope import Scope


class HttpProvider(Provider):
    """DI provider for the remote upload API adapter."""

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterator[httpx.AsyncClient]:
        """Shared client for the upload API (connection pooling), closed with the container."""
        timeout = httpx.Timeout(
            connect=config.api.connect_timeout,
            read=config.api.read_timeout,
            write=config.api.read_timeout,
            pool=config.api.connect_timeout,
        )
        async with httpx.AsyncClient(timeout=timeout) as client:
            yield client

    @provide(scope=Scope.APP, provides=UploadApi)
    def get_upload_api(self, config: Config, client: httpx.AsyncClient) -> HttpUploadApi:
        return HttpUploadApi(client=client, base_url=config.api.base_url)
