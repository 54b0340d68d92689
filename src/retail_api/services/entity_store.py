"""Typed entity access over a table adapter."""
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from retail_api.adapters.table import BaseTable

M = TypeVar("M", bound=BaseModel)


class EntityStore(Generic[M]):
    """
    Keyed record store for one entity type.

    Every record lives in the fixed ``partition_key`` partition and is
    identified by its row key. The model type supplies the field set and the
    validation of stored records.
    """

    def __init__(self, table: BaseTable, model: Type[M], partition_key: str) -> None:
        self.table = table
        self.model = model
        self.partition_key = partition_key

    def _load(self, entity: dict) -> M:
        return self.model.model_validate(entity)

    async def create_if_not_exists(self) -> None:
        await self.table.create_if_not_exists()

    async def upsert(self, record: M) -> M:
        """Insert or overwrite ``record``; the returned copy carries the new timestamp and ETag."""
        entity = record.model_dump(mode="json", by_alias=True, exclude={"timestamp", "etag"})
        entity["PartitionKey"] = self.partition_key
        return self._load(await self.table.upsert_entity(entity))

    async def get(self, row_key: str) -> Optional[M]:
        entity = await self.table.get_entity(self.partition_key, row_key)
        return self._load(entity) if entity is not None else None

    async def list(self) -> List[M]:
        return [self._load(entity) for entity in await self.table.query_entities(self.partition_key)]

    async def delete(self, row_key: str) -> None:
        await self.table.delete_entity(self.partition_key, row_key)
