"""Unit tests for LighthouseStorage against a mocked HTTP transport."""

import json

import httpx
import pytest

from lighthouse_tools.config import Settings
from lighthouse_tools.errors import StorageServiceError
from lighthouse_tools.retrieve import DOWNLOAD, fetch
from lighthouse_tools.storage import cipher, key_shards
from lighthouse_tools.storage.lighthouse import LighthouseStorage

CID = "bafkreitestcid"


class FakeLighthouse:
    """Routes requests the way the Lighthouse hosts would answer them."""

    def __init__(self):
        self.requests = []
        self.shards = {}
        self.files = {}
        self.encrypted = set()
        self.down_nodes = set()
        self.conditions = {}

    def __call__(self, request):
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "encryption.lighthouse.storage":
            return self.encryption_node(request, path)
        if host == "upload.lighthouse.storage" and path == "/api/v0/add":
            if request.headers.get("authorization") != "Bearer test-api-key":
                return httpx.Response(401, json={"error": "bad api key"})
            return httpx.Response(200, json={"Name": "test.txt", "Hash": CID, "Size": "42"})
        if host == "gateway.lighthouse.storage" and path.startswith("/ipfs/"):
            cid = path.rsplit("/", 1)[-1]
            if cid not in self.files:
                return httpx.Response(404, text="not found")
            content, content_type = self.files[cid]
            return httpx.Response(200, content=content, headers={"content-type": content_type})
        if host == "api.lighthouse.storage" and path == "/api/lighthouse/file_info":
            cid = request.url.params["cid"]
            if cid not in self.files:
                return httpx.Response(404, json={"message": "no file info"})
            return httpx.Response(200, json={"cid": cid, "encryption": cid in self.encrypted})
        if host == "api.lighthouse.storage" and path == "/api/lighthouse/deal_status":
            return httpx.Response(200, json=[{"cid": request.url.params["cid"], "dealId": 7}])
        return httpx.Response(404)

    def encryption_node(self, request, path):
        parts = path.strip("/").split("/")
        if parts[:2] == ["api", "message"]:
            return httpx.Response(200, json=[{"message": f"sign this {parts[2]}"}])
        if parts[1] == "getZkConditions":
            return httpx.Response(200, json={"conditions": self.conditions.get(parts[2], [])})

        node = int(parts[2])
        if node in self.down_nodes:
            return httpx.Response(503, text="node down")
        body = json.loads(request.content)
        if parts[1] == "setSharedKey":
            self.shards[node] = body["payload"]
            return httpx.Response(200, json={"message": "success"})
        if parts[1] == "retrieveSharedKey":
            if node not in self.shards:
                return httpx.Response(404, json={"message": "cid not found"})
            return httpx.Response(200, json={"payload": self.shards[node]})
        if parts[1] == "setAccessConditions":
            self.conditions[body["cid"]] = body["conditions"]
            return httpx.Response(200, json={"message": "success"})
        return httpx.Response(404)


@pytest.fixture
def lighthouse():
    return FakeLighthouse()


@pytest.fixture
def client(lighthouse, tmp_path):
    settings = Settings(api_key="test-api-key", workdir=tmp_path)
    storage = LighthouseStorage(settings, transport=httpx.MockTransport(lighthouse))
    yield storage
    storage.close()


def seed_encrypted(lighthouse, plaintext):
    master_key, shards = key_shards.generate()
    for node, shard in enumerate(shards, start=1):
        lighthouse.shards[node] = shard.to_dict()
    lighthouse.files[CID] = (cipher.encrypt_bytes(plaintext, master_key), "application/octet-stream")
    lighthouse.encrypted.add(CID)
    return master_key


def test_get_auth_message(client):
    assert client.get_auth_message("0xabc") == "sign this 0xabc"


def test_upload_parses_response(client, lighthouse):
    result = client.upload(b"hello", "test.txt", "test-api-key")

    assert (result.name, result.cid, result.size) == ("test.txt", CID, 42)
    assert lighthouse.requests[0].url.params["wrap-with-directory"] == "false"


def test_upload_without_api_key_makes_no_request(client, lighthouse):
    with pytest.raises(StorageServiceError):
        client.upload(b"hello", "test.txt", None)
    assert lighthouse.requests == []


def test_http_error_keeps_status_and_body(client):
    with pytest.raises(StorageServiceError) as exc_info:
        client.upload(b"hello", "test.txt", "wrong-key")

    assert exc_info.value.status_code == 401
    assert "bad api key" in exc_info.value.body


def test_upload_encrypted_stores_every_shard(client, lighthouse):
    client.upload_encrypted(b"secret", "test.txt", "test-api-key", "0xabc", "0xsigned")

    shard_requests = [r for r in lighthouse.requests if "setSharedKey" in r.url.path]
    assert len(shard_requests) == key_shards.SHARD_COUNT
    assert all(r.headers["authorization"] == "Bearer 0xsigned" for r in shard_requests)
    assert json.loads(shard_requests[0].content)["cid"] == CID


def test_fetch_key_and_decrypt(client, lighthouse):
    master_key = seed_encrypted(lighthouse, b"decrypt me")

    key = client.fetch_encryption_key(CID, "0xabc", "0xsigned")

    assert key == master_key
    assert client.decrypt(CID, key) == b"decrypt me"


def test_fetch_key_tolerates_a_down_node(client, lighthouse):
    master_key = seed_encrypted(lighthouse, b"decrypt me")
    lighthouse.down_nodes.add(2)

    assert client.fetch_encryption_key(CID, "0xabc", "0xsigned") == master_key


def test_fetch_key_for_plain_file_fails(client, lighthouse):
    with pytest.raises(StorageServiceError) as exc_info:
        client.fetch_encryption_key(CID, "0xabc", "0xsigned")

    assert exc_info.value.status_code == 404


def test_fetch_key_rejects_non_hex_shards(client, lighthouse):
    for node in range(1, key_shards.SHARD_COUNT + 1):
        lighthouse.shards[node] = {"key": "zz", "index": "01"}

    with pytest.raises(StorageServiceError):
        client.fetch_encryption_key(CID, "0xabc", "0xsigned")


def test_fetch_key_with_colliding_indexes_fails(client, lighthouse):
    lighthouse.shards[1] = {"key": "01", "index": "01"}
    lighthouse.shards[2] = {"key": "02", "index": format(key_shards.FIELD_ORDER + 1, "x")}
    lighthouse.shards[3] = {"key": "03", "index": "03"}

    with pytest.raises(StorageServiceError, match="Could not recover key"):
        client.fetch_encryption_key(CID, "0xabc", "0xsigned")


def test_fetch_falls_back_to_download_on_garbled_shards(client, lighthouse, owner):
    for node in range(1, key_shards.SHARD_COUNT + 1):
        lighthouse.shards[node] = {"key": "zz", "index": "01"}
    lighthouse.files[CID] = (b"plain gateway bytes", "text/plain")

    attempt = fetch(CID, owner, client)

    assert attempt.source == DOWNLOAD
    assert attempt.content == b"plain gateway bytes"


def test_download_flags_encrypted_objects(client, lighthouse):
    seed_encrypted(lighthouse, b"hidden")
    lighthouse.files["bafkreiplain"] = (b'{"a": 1}', "application/json")

    assert client.download(CID).encrypted is True
    plain = client.download("bafkreiplain")
    assert plain.encrypted is False
    assert plain.is_json


def test_download_without_file_info_is_plain(client, lighthouse):
    lighthouse.files["QmExternal"] = (b"pinned elsewhere", "text/plain")
    original = lighthouse.__call__

    def no_info(request):
        if request.url.path == "/api/lighthouse/file_info":
            return httpx.Response(404, json={"message": "no file info"})
        return original(request)

    client.session = httpx.Client(transport=httpx.MockTransport(no_info))
    obj = client.download("QmExternal")

    assert obj.content == b"pinned elsewhere"
    assert obj.encrypted is False


def test_apply_access_condition_reaches_every_node(client, lighthouse):
    conditions = [{"id": 1, "method": "getBlockNumber"}]

    ack = client.apply_access_condition("0xabc", CID, "0xsigned", conditions, "([1])")

    assert ack == {"data": {"cid": CID, "status": "Success"}}
    node_requests = [r for r in lighthouse.requests if "setAccessConditions" in r.url.path]
    assert len(node_requests) == key_shards.SHARD_COUNT
    assert json.loads(node_requests[0].content)["aggregator"] == "([1])"
    assert client.get_zk_conditions(CID, "0xsigned") == {"conditions": conditions}


def test_deal_status(client):
    assert client.deal_status(CID) == [{"cid": CID, "dealId": 7}]
