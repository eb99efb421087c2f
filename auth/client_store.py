from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path

import httpx

from auth.models import ClientRecord


class ClientStore(ABC):
    @abstractmethod
    async def get(self, client_id: int) -> ClientRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def upsert(self, record: ClientRecord) -> None:
        raise NotImplementedError


class MemoryClientStore(ClientStore):
    def __init__(self) -> None:
        self._clients: dict[int, ClientRecord] = {}

    async def get(self, client_id: int) -> ClientRecord | None:
        return self._clients.get(client_id)

    async def upsert(self, record: ClientRecord) -> None:
        self._clients[record.id] = record


class FileClientStore(ClientStore):
    def __init__(self, path: str | Path = ".clients.json") -> None:
        self._path = Path(path)

    async def get(self, client_id: int) -> ClientRecord | None:
        payload = self._read_all().get(str(client_id))
        if payload is None:
            return None
        return ClientRecord(**payload)

    async def upsert(self, record: ClientRecord) -> None:
        all_clients = self._read_all()
        all_clients[str(record.id)] = asdict(record)
        self._write_all(all_clients)

    def _read_all(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise RuntimeError("Client store file is invalid; expected top-level JSON object.")
        return raw

    def _write_all(self, payload: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()


class HttpClientStore(ClientStore):
    """Forward known clients to the venue backend's ``/api/clients`` resource.

    ``upsert`` posts the record to the collection URL; ``get`` reads
    ``{url}/{id}`` and maps 404 to ``None``.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client

    def _record_url(self, client_id: int) -> str:
        return f"{self._url.rstrip('/')}/{client_id}"

    async def get(self, client_id: int) -> ClientRecord | None:
        own_client = self._client is None
        http_client = self._client or httpx.AsyncClient(timeout=self._timeout)

        try:
            response = await http_client.get(self._record_url(client_id))
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return ClientRecord(**response.json())
        except httpx.HTTPStatusError as error:
            raise RuntimeError(
                f"Client lookup failed with status {error.response.status_code}: {error.response.text}"
            ) from error
        finally:
            if own_client:
                await http_client.aclose()

    async def upsert(self, record: ClientRecord) -> None:
        own_client = self._client is None
        http_client = self._client or httpx.AsyncClient(timeout=self._timeout)

        try:
            response = await http_client.post(self._url, json=asdict(record))
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            raise RuntimeError(
                f"Client sync failed with status {error.response.status_code}: {error.response.text}"
            ) from error
        finally:
            if own_client:
                await http_client.aclose()
