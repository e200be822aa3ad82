import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .auth import sign_auth
from .errors import AccessControlError, LighthouseToolsError, StorageServiceError
from .identity import Identity
from .storage.base import StorageClient

DEFAULT_AGGREGATOR = "([1])"


@dataclass(frozen=True)
class AccessCondition:
    id: int
    chain: str
    method: str
    comparator: str
    value: str
    standard_contract_type: str = ""
    contract_address: Optional[str] = None
    parameters: List[Any] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Condition in the shape the encryption nodes evaluate."""
        payload = {
            "id": self.id,
            "chain": self.chain,
            "method": self.method,
            "standardContractType": self.standard_contract_type,
            "returnValueTest": {
                "comparator": self.comparator,
                "value": str(self.value),
            },
        }
        if self.contract_address:
            payload["contractAddress"] = self.contract_address
        if self.parameters:
            payload["parameters"] = list(self.parameters)
        return payload


def block_height_condition(chain: str, threshold: int = 1, condition_id: int = 1) -> AccessCondition:
    """Pass once the chain height reaches threshold; height >= 1 always passes."""
    return AccessCondition(
        id=condition_id,
        chain=chain,
        method="getBlockNumber",
        comparator=">=",
        value=str(threshold),
    )


def _signature_preview(signed_message: str) -> str:
    return signed_message[:20] + "..."


def apply_condition(
    cid: str,
    identity: Identity,
    storage: StorageClient,
    conditions: Sequence[AccessCondition],
    aggregator: str = DEFAULT_AGGREGATOR,
    chain_type: str = "evm",
) -> Dict[str, Any]:
    """Attach conditions to an encrypted CID owned by identity.

    The aggregator goes to the remote evaluator verbatim.
    """
    payload = [condition.to_payload() for condition in conditions]
    print(f"[access-control] Applying access control to CID: {cid}")
    print(f"[access-control] Owner address: {identity.address}")
    print(f"[access-control] Conditions: {json.dumps(payload, indent=2)}")
    print(f"[access-control] Aggregator: {aggregator}")

    signed_message = sign_auth(identity, storage)
    print(f"[access-control] Signed message: {_signature_preview(signed_message)}")

    try:
        ack = storage.apply_access_condition(
            identity.address, cid, signed_message, payload, aggregator, chain_type
        )
    except StorageServiceError as e:
        print(f"[access-control ERROR] Error applying access control: {e}")
        if e.status_code is not None:
            print(f"[access-control ERROR] Response status: {e.status_code}")
            print(f"[access-control ERROR] Response data: {e.body}")
        raise AccessControlError(
            f"Access control rejected for {cid}: {e}",
            status_code=e.status_code,
            body=e.body,
        ) from e

    print("[access-control] Access control applied successfully!")
    print(f"[access-control] Response: {json.dumps(ack, indent=2)}")
    return ack


def get_zk_conditions(cid: str, identity: Identity, storage: StorageClient) -> Optional[Any]:
    """Conditions currently stored for cid; None if they cannot be read."""
    try:
        signed_message = sign_auth(identity, storage)
        conditions = storage.get_zk_conditions(cid, signed_message)
    except LighthouseToolsError as e:
        print(f"[access-control] Could not read zk conditions for {cid}: {e}")
        return None
    print(f"[access-control] zk conditions: {json.dumps(conditions, indent=2)}")
    return conditions


def get_file_encryption_key(cid: str, identity: Identity, storage: StorageClient) -> str:
    print(f"[access-control] Getting encryption key for CID: {cid}")
    get_zk_conditions(cid, identity, storage)

    print(f"[access-control] User address: {identity.address}")
    signed_message = sign_auth(identity, storage)
    print(f"[access-control] Signed message: {_signature_preview(signed_message)}")

    print("[access-control] Fetching encryption key...")
    try:
        key = storage.fetch_encryption_key(cid, identity.address, signed_message)
    except StorageServiceError as e:
        print(f"[access-control ERROR] Error getting encryption key: {e}")
        if e.status_code is not None:
            print(f"[access-control ERROR] Response status: {e.status_code}")
            print(f"[access-control ERROR] Response data: {e.body}")
        raise AccessControlError(
            f"Key fetch refused for {cid}: {e}",
            status_code=e.status_code,
            body=e.body,
        ) from e

    print("[access-control] Encryption key retrieved successfully!")
    return key


def check_access_control_workflow(
    cid: str,
    identity: Identity,
    storage: StorageClient,
    conditions: Sequence[AccessCondition],
    aggregator: str = DEFAULT_AGGREGATOR,
) -> bool:
    """Apply conditions, then check the key is still reachable."""
    print("\n[access-control] TESTING ACCESS CONTROL WORKFLOW")
    print("=" * 50)
    try:
        print("\n[access-control] Step 1: Applying access control...")
        apply_condition(cid, identity, storage, conditions, aggregator)

        print("\n[access-control] Step 2: Testing encryption key retrieval...")
        get_file_encryption_key(cid, identity, storage)
    except LighthouseToolsError as e:
        print(f"\n[access-control ERROR] Workflow test failed: {e}")
        return False

    print("\n[access-control] Workflow test completed successfully!")
    return True
