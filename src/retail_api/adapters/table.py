"""Table primitive: entities keyed by (PartitionKey, RowKey)."""
import asyncio
import json
import logging
import re
import sqlite3
import uuid
from contextlib import closing
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from retail_api.adapters.aws_clients import error_code, get_resource
from retail_api.config.settings import Settings

logger = logging.getLogger(__name__)

PARTITION_KEY = "PartitionKey"
ROW_KEY = "RowKey"
TIMESTAMP = "Timestamp"
ETAG = "ETag"

Entity = Dict[str, Any]

_TABLE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,62}$")


def _stamp(entity: Entity) -> Entity:
    """Copy ``entity`` with a fresh store timestamp and concurrency token."""
    stored = dict(entity)
    stored[TIMESTAMP] = datetime.now(timezone.utc).isoformat()
    stored[ETAG] = f'W/"{uuid.uuid4().hex}"'
    return stored


class BaseTable:
    """Base class for table handling (to be extended by specific implementations)"""

    def __init__(self, table_name: str):
        self.table_name = table_name

    async def create_if_not_exists(self) -> None:
        raise NotImplementedError

    async def upsert_entity(self, entity: Entity) -> Entity:
        """Insert or fully replace ``entity``; returns the stored copy."""
        raise NotImplementedError

    async def get_entity(self, partition_key: str, row_key: str) -> Optional[Entity]:
        """Return the entity, or None if there is none at that key."""
        raise NotImplementedError

    async def query_entities(self, partition_key: str) -> List[Entity]:
        """Return every entity of the partition in backend iteration order."""
        raise NotImplementedError

    async def delete_entity(self, partition_key: str, row_key: str) -> None:
        """Delete the entity; deleting a missing key is not an error."""
        raise NotImplementedError


class LocalTable(BaseTable):
    """Handles a table stored as JSON documents in a local SQLite database"""

    def __init__(self, table_name: str, db_path: Path):
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")
        super().__init__(table_name)
        self.db_path = Path(db_path)
        logger.info("LocalTable %s initialized at: %s", table_name, self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _run(self, sql: str, params: tuple = (), fetch: Optional[str] = None) -> Any:
        """Run one statement on a fresh connection; ``fetch`` is None, "one" or "all"."""
        with closing(self._get_connection()) as conn, conn:
            cursor = conn.execute(sql, params)
            if fetch == "one":
                return cursor.fetchone()
            if fetch == "all":
                return cursor.fetchall()
            return None

    def _create_table(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            f'''
            CREATE TABLE IF NOT EXISTS "{self.table_name}" (
                partition_key TEXT NOT NULL,
                row_key TEXT NOT NULL,
                document TEXT NOT NULL,
                PRIMARY KEY (partition_key, row_key)
            )
            '''
        )

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self._create_table)

    async def upsert_entity(self, entity: Entity) -> Entity:
        stored = _stamp(entity)
        await asyncio.to_thread(
            self._run,
            f'''
            INSERT INTO "{self.table_name}" (partition_key, row_key, document)
            VALUES (?, ?, ?)
            ON CONFLICT (partition_key, row_key) DO UPDATE SET document = excluded.document
            ''',
            (stored[PARTITION_KEY], stored[ROW_KEY], json.dumps(stored)),
        )
        return stored

    async def get_entity(self, partition_key: str, row_key: str) -> Optional[Entity]:
        row = await asyncio.to_thread(
            self._run,
            f'SELECT document FROM "{self.table_name}" WHERE partition_key = ? AND row_key = ?',
            (partition_key, row_key),
            "one",
        )
        return json.loads(row["document"]) if row else None

    async def query_entities(self, partition_key: str) -> List[Entity]:
        rows = await asyncio.to_thread(
            self._run,
            f'SELECT document FROM "{self.table_name}" WHERE partition_key = ? ORDER BY rowid',
            (partition_key,),
            "all",
        )
        return [json.loads(row["document"]) for row in rows]

    async def delete_entity(self, partition_key: str, row_key: str) -> None:
        await asyncio.to_thread(
            self._run,
            f'DELETE FROM "{self.table_name}" WHERE partition_key = ? AND row_key = ?',
            (partition_key, row_key),
        )


def _to_dynamo(entity: Entity) -> Entity:
    # DynamoDB rejects floats; round-trip through JSON to turn them into Decimals
    return json.loads(json.dumps(entity), parse_float=Decimal)


def _from_dynamo(item: Entity) -> Entity:
    return {key: float(value) if isinstance(value, Decimal) else value for key, value in item.items()}


class DynamoDBTable(BaseTable):
    """Handles a DynamoDB table keyed by (PartitionKey, RowKey)"""

    def __init__(self, table_name: str, dynamodb: Any):
        super().__init__(table_name)
        self.dynamodb = dynamodb
        self.table = dynamodb.Table(table_name)
        logger.info(f"DynamoDBTable initialized: {table_name}")

    def _create_table(self) -> None:
        try:
            self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {"AttributeName": PARTITION_KEY, "KeyType": "HASH"},
                    {"AttributeName": ROW_KEY, "KeyType": "RANGE"},
                ],
                AttributeDefinitions=[
                    {"AttributeName": PARTITION_KEY, "AttributeType": "S"},
                    {"AttributeName": ROW_KEY, "AttributeType": "S"},
                ],
                BillingMode="PAY_PER_REQUEST",
            )
            self.table.wait_until_exists()
            logger.info(f"Created DynamoDB table {self.table_name}")
        except ClientError as e:
            if error_code(e) != "ResourceInUseException":
                raise
            logger.debug(f"DynamoDB table {self.table_name} already exists")

    def _scan(self, partition_key: str) -> List[Entity]:
        items: List[Entity] = []
        scan_kwargs: Dict[str, Any] = {
            "FilterExpression": "#pk = :pk",
            "ExpressionAttributeNames": {"#pk": PARTITION_KEY},
            "ExpressionAttributeValues": {":pk": partition_key},
        }
        while True:
            response = self.table.scan(**scan_kwargs)
            items.extend(_from_dynamo(item) for item in response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                return items
            scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self._create_table)

    async def upsert_entity(self, entity: Entity) -> Entity:
        stored = _stamp(entity)
        await asyncio.to_thread(self.table.put_item, Item=_to_dynamo(stored))
        return stored

    async def get_entity(self, partition_key: str, row_key: str) -> Optional[Entity]:
        response = await asyncio.to_thread(
            self.table.get_item,
            Key={PARTITION_KEY: partition_key, ROW_KEY: row_key},
        )
        item = response.get("Item")
        return _from_dynamo(item) if item else None

    async def query_entities(self, partition_key: str) -> List[Entity]:
        return await asyncio.to_thread(self._scan, partition_key)

    async def delete_entity(self, partition_key: str, row_key: str) -> None:
        await asyncio.to_thread(
            self.table.delete_item,
            Key={PARTITION_KEY: partition_key, ROW_KEY: row_key},
        )


class TableFactory:
    """Factory to initialize the correct table handler based on deployment mode"""

    @staticmethod
    def get_table(settings: Settings, table_name: str) -> BaseTable:
        deployment_mode = settings.deployment_mode
        logger.info(f"Creating table handler {table_name} for mode: {deployment_mode}")
        if deployment_mode == "local-dev":
            return LocalTable(table_name, Path(settings.storage_dir) / "tables.db")
        if settings.is_aws:
            return DynamoDBTable(table_name, get_resource(settings, "dynamodb"))
        raise ValueError(f"Invalid deployment_mode: {deployment_mode}")
