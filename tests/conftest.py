"""Shared pytest fixtures for all tests."""

import hashlib
import itertools
import json

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from lighthouse_tools.config import Settings
from lighthouse_tools.errors import StorageServiceError
from lighthouse_tools.identity import Identity
from lighthouse_tools.storage.base import DownloadedObject, StorageClient, UploadResult

# Hardhat dev node accounts #0 and #1
OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
STRANGER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
STRANGER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class FakeStorage(StorageClient):
    """In-memory stand-in for the Lighthouse network.

    Verifies signatures against the issued challenge and evaluates
    block-height conditions against a fixed chain height.
    """

    def __init__(self, chain_height=1_000_000):
        self.chain_height = chain_height
        self.objects = {}
        self.calls = []
        self.challenges = {}
        self._nonce = itertools.count(1)
        self.fail_auth = False
        self.fail_upload = False
        self.fail_download = False
        self.fail_deal_status = False
        self.closed = False

    def _verify(self, address, signed_message):
        message = self.challenges.get(address)
        if message is None:
            raise StorageServiceError("No challenge issued", status_code=401)
        signer = Account.recover_message(encode_defunct(text=message), signature=signed_message)
        if signer != address:
            raise StorageServiceError("Invalid signature", status_code=401)

    def _object(self, cid):
        if cid not in self.objects:
            raise StorageServiceError(f"{cid} not found", status_code=404, body="not found")
        return self.objects[cid]

    def _conditions_pass(self, obj):
        if not obj["conditions"]:
            return False
        for condition in obj["conditions"]:
            test = condition["returnValueTest"]
            if test["comparator"] != ">=" or self.chain_height < int(test["value"]):
                return False
        return True

    def get_auth_message(self, address):
        self.calls.append(("get_auth_message", address))
        if self.fail_auth:
            raise StorageServiceError("challenge service down", status_code=503)
        message = f"Please sign this message to prove you are owner of this account: {next(self._nonce)}"
        self.challenges[address] = message
        return message

    def _store(self, data, name, encrypted, owner=None):
        digest = hashlib.sha256(data + (b"enc" if encrypted else b"")).hexdigest()
        cid = "bafkrei" + digest[:52]
        self.objects[cid] = {
            "name": name,
            "content": data,
            "encrypted": encrypted,
            "owner": owner,
            "key": "key-" + digest[:16] if encrypted else None,
            "conditions": [],
            "aggregator": None,
        }
        return UploadResult(name=name, cid=cid, size=len(data) + 11)

    def upload(self, data, name, api_key):
        self.calls.append(("upload", name))
        if self.fail_upload:
            raise StorageServiceError("upload rejected", status_code=500)
        return self._store(data, name, encrypted=False)

    def upload_encrypted(self, data, name, api_key, address, signed_message):
        self.calls.append(("upload_encrypted", name))
        if self.fail_upload:
            raise StorageServiceError("upload rejected", status_code=500)
        self._verify(address, signed_message)
        return self._store(data, name, encrypted=True, owner=address)

    def fetch_encryption_key(self, cid, address, signed_message):
        self.calls.append(("fetch_encryption_key", cid))
        self._verify(address, signed_message)
        obj = self._object(cid)
        if not obj["encrypted"]:
            raise StorageServiceError("file is not encrypted", status_code=404, body="no shards")
        if address != obj["owner"] and not self._conditions_pass(obj):
            raise StorageServiceError("access denied", status_code=403, body="access denied")
        return obj["key"]

    def decrypt(self, cid, key):
        self.calls.append(("decrypt", cid))
        obj = self._object(cid)
        if key != obj["key"]:
            raise StorageServiceError("wrong key")
        return obj["content"]

    def download(self, cid):
        self.calls.append(("download", cid))
        if self.fail_download:
            raise StorageServiceError("gateway timeout", status_code=504)
        obj = self._object(cid)
        content = obj["content"]
        if obj["encrypted"]:
            content = b"\x00cipher" + hashlib.sha256(content).digest()
        content_type = "application/json" if obj["name"].endswith(".json") else "text/plain"
        return DownloadedObject(
            cid=cid, content=content, content_type=content_type, encrypted=obj["encrypted"]
        )

    def deal_status(self, cid):
        self.calls.append(("deal_status", cid))
        if self.fail_deal_status:
            raise StorageServiceError("deal service down", status_code=500)
        self._object(cid)
        return [{"cid": cid, "dealId": 42, "storageProvider": "f01234"}]

    def apply_access_condition(self, address, cid, signed_message, conditions, aggregator, chain_type="evm"):
        self.calls.append(("apply_access_condition", cid))
        self._verify(address, signed_message)
        obj = self._object(cid)
        if obj["owner"] != address:
            raise StorageServiceError(
                "not the owner", status_code=403, body=json.dumps({"message": "unauthorized"})
            )
        obj["conditions"] = list(conditions)
        obj["aggregator"] = aggregator
        return {"data": {"cid": cid, "status": "Success"}}

    def get_zk_conditions(self, cid, signed_message):
        self.calls.append(("get_zk_conditions", cid))
        return self._object(cid)["conditions"]

    def close(self):
        self.closed = True

    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def owner():
    return Identity.from_secret(OWNER_KEY)


@pytest.fixture
def stranger():
    return Identity.from_secret(STRANGER_KEY)


@pytest.fixture
def settings(tmp_path):
    return Settings(private_key=OWNER_KEY, api_key="test-api-key", workdir=tmp_path)


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / "test.txt"
    file_path.write_text("Sample content for testing")
    return file_path
