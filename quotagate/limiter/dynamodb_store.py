"""DynamoDB-backed window store shared across gateway instances.

Table layout (hash key only):
- rate_key:   S, the identity key
- timestamps: L of N, admitted request instants (epoch seconds)
- version:    S, fresh random token on every write, used for conditional puts
- expires_at: N, epoch seconds; enable DynamoDB TTL on this attribute so
              idle keys disappear even if no sweep runs
"""

import asyncio
import math
import threading
import time
from decimal import Decimal

from quotagate.limiter.errors import StorageUnavailable
from quotagate.limiter.models import RateWindowEntry
from quotagate.limiter.store import WindowStore, new_version_token


class DynamoDBWindowStore(WindowStore):
    """Compare-and-swap via conditional writes on the `version` attribute."""

    def __init__(self, table_name: str, region: str = "us-east-1", ttl_seconds: float = 7200.0):
        self._table_name = table_name
        self._region = region
        self._ttl_seconds = ttl_seconds
        self._table = None
        self._table_lock = threading.Lock()

    def _get_table(self):
        """Lazy-init boto3 Table resource, once, from whichever worker thread gets here first."""
        with self._table_lock:
            if self._table is None:
                import boto3

                dynamodb = boto3.resource("dynamodb", region_name=self._region)
                self._table = dynamodb.Table(self._table_name)
            return self._table

    async def get_or_create(self, key: str) -> RateWindowEntry:
        return await asyncio.to_thread(self._get_item, key)

    async def compare_and_swap(
        self, key: str, expected_version: str | None, timestamps: list[float]
    ) -> bool:
        return await asyncio.to_thread(self._conditional_put, key, expected_version, timestamps)

    async def delete_if_empty(self, key: str) -> bool:
        return await asyncio.to_thread(self._conditional_delete, key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._call, "delete_item", Key={"rate_key": key})

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._scan_keys)

    def _call(self, operation: str, **kwargs) -> dict:
        """Run a table operation, translating backend failures to StorageUnavailable."""
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            return getattr(self._get_table(), operation)(**kwargs)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise
            raise StorageUnavailable(f"DynamoDB {operation} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageUnavailable(f"DynamoDB {operation} failed: {e}") from e

    def _get_item(self, key: str) -> RateWindowEntry:
        resp = self._call("get_item", Key={"rate_key": key}, ConsistentRead=True)
        item = resp.get("Item")
        if not item:
            return RateWindowEntry(key=key)
        return RateWindowEntry(
            key=key,
            timestamps=[float(t) for t in item.get("timestamps", [])],
            version=item.get("version"),
        )

    def _conditional_put(self, key: str, expected_version: str | None, timestamps: list[float]) -> bool:
        from boto3.dynamodb.conditions import Attr
        from botocore.exceptions import ClientError

        if expected_version is None:
            condition = Attr("rate_key").not_exists()
        else:
            condition = Attr("version").eq(expected_version)

        newest = max(timestamps) if timestamps else time.time()
        item = {
            "rate_key": key,
            "timestamps": [Decimal(str(t)) for t in timestamps],
            "version": new_version_token(),
            "expires_at": int(math.ceil(newest + self._ttl_seconds)),
        }
        try:
            self._call("put_item", Item=item, ConditionExpression=condition)
        except ClientError:
            # Only conditional failures reach here; _call wraps the rest
            return False
        return True

    def _conditional_delete(self, key: str) -> bool:
        from boto3.dynamodb.conditions import Attr
        from botocore.exceptions import ClientError

        try:
            self._call(
                "delete_item",
                Key={"rate_key": key},
                ConditionExpression=Attr("timestamps").size().eq(0),
            )
        except ClientError:
            return False
        return True

    def _scan_keys(self) -> list[str]:
        keys: list[str] = []
        kwargs = {"ProjectionExpression": "rate_key"}
        while True:
            resp = self._call("scan", **kwargs)
            keys.extend(item["rate_key"] for item in resp.get("Items", []))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return keys
            kwargs["ExclusiveStartKey"] = last
