import base64
from typing import Any, Dict, Optional, Union

import httpx

from .errors import BloomdError

Item = Union[str, bytes]


class BloomdClient:
    """
    Async client for a running bloomd service.

    str items travel as UTF-8, bytes items as base64; both reach the filter
    as the same raw bytes.
    """

    def __init__(
        self,
        base_url: str = "http://[::1]:50051",
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @staticmethod
    def _body(item: Item) -> Dict[str, str]:
        if isinstance(item, (bytes, bytearray)):
            return {"item": base64.b64encode(bytes(item)).decode("ascii"), "encoding": "base64"}
        return {"item": item, "encoding": "utf-8"}

    async def _post(self, path: str, body: Dict[str, str]) -> Dict[str, Any]:
        resp = await self._client.post(path, json=body)
        if resp.status_code != 200:
            raise BloomdError(f"bloomd HTTP {resp.status_code} from {path}: {resp.text}")
        return resp.json()

    async def insert(self, item: Item) -> None:
        await self._post("/insert", self._body(item))

    async def contains(self, item: Item) -> bool:
        data = await self._post("/contains", self._body(item))
        if not isinstance(data, dict) or "containsItem" not in data:
            raise BloomdError(f"Bad bloomd response shape from /contains: {data}")
        return bool(data["containsItem"])

    async def stats(self) -> Dict[str, Any]:
        resp = await self._client.get("/stats")
        if resp.status_code != 200:
            raise BloomdError(f"bloomd HTTP {resp.status_code} from /stats: {resp.text}")
        return resp.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BloomdClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
