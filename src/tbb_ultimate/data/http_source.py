from typing import Any, Dict, Optional
import aiohttp

from tbb_ultimate.core.errors import NetworkError
from tbb_ultimate.utils.logger import TradingLogger

class HttpSource:
    """Shared aiohttp session handling for REST data sources"""

    name = "http"

    def __init__(self, base_url: str, session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None):
        self.base_url = base_url.rstrip("/")
        self.logger = logger or TradingLogger(f"tbb_ultimate.{self.name.lower()}")
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    raise NetworkError(f"{self.name} request failed with status {response.status}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NetworkError(f"{self.name} request failed: {str(e)}") from e

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        session = await self._get_session()
        try:
            async with session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"}
            ) as response:
                if response.status != 200:
                    text = await response.text()
                    raise NetworkError(f"{self.name} request failed with status {response.status}: {text}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NetworkError(f"{self.name} request failed: {str(e)}") from e

    async def close(self):
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
