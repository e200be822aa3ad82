import json
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..errors import StorageServiceError
from . import cipher, key_shards
from .base import DownloadedObject, StorageClient, UploadResult


class LighthouseStorage(StorageClient):
    """REST client for the Lighthouse upload, gateway and encryption nodes."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        self.session = httpx.Client(
            timeout=settings.timeout,
            transport=transport,
            follow_redirects=True,
        )

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageServiceError(
                f"{method} {url} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
                body=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise StorageServiceError(f"{method} {url} failed: {e}") from e
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise StorageServiceError(
                f"Invalid JSON from {response.request.url}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    @staticmethod
    def _bearer(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _node_url(self, path: str, node: int) -> str:
        return f"{self.settings.encryption_url}/api/{path}/{node}"

    # --- auth ---

    def get_auth_message(self, address: str) -> str:
        response = self._request(
            "GET", f"{self.settings.encryption_url}/api/message/{address}"
        )
        data = self._json(response)
        # the node answers with a one-element list
        if isinstance(data, list) and data:
            data = data[0]
        message = data.get("message") if isinstance(data, dict) else None
        if not message:
            raise StorageServiceError(
                "Auth message missing from response",
                status_code=response.status_code,
                body=response.text,
            )
        return message

    # --- upload ---

    def upload(self, data: bytes, name: str, api_key: Optional[str]) -> UploadResult:
        if not api_key:
            raise StorageServiceError("API_KEY is required for uploads")

        response = self._request(
            "POST",
            f"{self.settings.upload_url}/api/v0/add",
            params={"wrap-with-directory": "false"},
            headers=self._bearer(api_key),
            files={"file": (name, data)},
        )
        body = self._json(response)
        # multi-file uploads answer with a list, single files with an object
        if isinstance(body, list):
            if not body:
                raise StorageServiceError("Empty upload response", body=response.text)
            body = body[0]
        try:
            return UploadResult(
                name=body["Name"], cid=body["Hash"], size=int(body["Size"])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StorageServiceError(
                f"Unexpected upload response: {e}", body=response.text
            ) from e

    def upload_encrypted(
        self,
        data: bytes,
        name: str,
        api_key: Optional[str],
        address: str,
        signed_message: str,
    ) -> UploadResult:
        master_key, shards = key_shards.generate()
        result = self.upload(cipher.encrypt_bytes(data, master_key), name, api_key)
        self._save_shards(address, result.cid, signed_message, shards)
        return result

    def _save_shards(
        self,
        address: str,
        cid: str,
        signed_message: str,
        shards: List[key_shards.KeyShard],
    ) -> None:
        for node, shard in enumerate(shards, start=1):
            self._request(
                "POST",
                self._node_url("setSharedKey", node),
                headers=self._bearer(signed_message),
                json={"address": address, "cid": cid, "payload": shard.to_dict()},
            )

    # --- retrieval ---

    def fetch_encryption_key(self, cid: str, address: str, signed_message: str) -> str:
        shards = []
        errors = []
        for node in range(1, key_shards.SHARD_COUNT + 1):
            try:
                response = self._request(
                    "POST",
                    self._node_url("retrieveSharedKey", node),
                    headers=self._bearer(signed_message),
                    json={"address": address, "cid": cid},
                )
                shards.append(key_shards.KeyShard.from_dict(self._json(response)["payload"]))
            except (StorageServiceError, KeyError, TypeError, ValueError) as e:
                errors.append(e)
                continue
            if len(shards) == key_shards.THRESHOLD:
                try:
                    return key_shards.recover(shards)
                except ValueError as e:
                    raise StorageServiceError(f"Could not recover key for {cid}: {e}") from e

        last = errors[-1] if errors else None
        raise StorageServiceError(
            f"Only {len(shards)} of {key_shards.THRESHOLD} key shards available for {cid}",
            status_code=getattr(last, "status_code", None),
            body=getattr(last, "body", None),
        )

    def decrypt(self, cid: str, key: str) -> bytes:
        response = self._request("GET", self.settings.view_url(cid))
        try:
            return cipher.decrypt_bytes(response.content, key)
        except ValueError as e:
            raise StorageServiceError(f"Could not decrypt {cid}: {e}") from e

    def file_info(self, cid: str) -> Dict[str, Any]:
        response = self._request(
            "GET",
            f"{self.settings.api_url}/api/lighthouse/file_info",
            params={"cid": cid},
        )
        return self._json(response)

    def download(self, cid: str) -> DownloadedObject:
        response = self._request("GET", self.settings.view_url(cid))

        encrypted = False
        try:
            encrypted = bool(self.file_info(cid).get("encryption"))
        except StorageServiceError as e:
            # objects pinned outside Lighthouse have no file info
            if e.status_code != 404:
                raise

        return DownloadedObject(
            cid=cid,
            content=response.content,
            content_type=response.headers.get("content-type"),
            encrypted=encrypted,
        )

    def deal_status(self, cid: str) -> List[Dict[str, Any]]:
        response = self._request(
            "GET",
            f"{self.settings.api_url}/api/lighthouse/deal_status",
            params={"cid": cid},
        )
        return self._json(response)

    # --- access control ---

    def apply_access_condition(
        self,
        address: str,
        cid: str,
        signed_message: str,
        conditions: List[Dict[str, Any]],
        aggregator: str,
        chain_type: str = "evm",
    ) -> Dict[str, Any]:
        payload = {
            "address": address,
            "cid": cid,
            "conditions": conditions,
            "aggregator": aggregator,
            "chainType": chain_type,
        }
        for node in range(1, key_shards.SHARD_COUNT + 1):
            self._request(
                "POST",
                self._node_url("setAccessConditions", node),
                headers=self._bearer(signed_message),
                json=payload,
            )
        # node replies carry no per-file data; this is the ack shape the SDK returns
        return {"data": {"cid": cid, "status": "Success"}}

    def get_zk_conditions(self, cid: str, signed_message: str) -> Any:
        response = self._request(
            "GET",
            f"{self.settings.encryption_url}/api/getZkConditions/{cid}",
            headers={"Accept": "application/json", **self._bearer(signed_message)},
        )
        return self._json(response)
