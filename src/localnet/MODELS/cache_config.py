"""
Models for the build cache document consumed by ``docker buildx bake``.
"""
from typing import List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class CacheScope(BaseModel):
    """
    Names the partition of the remote layer cache a service reads and writes.
    """
    model_config = ConfigDict(frozen=True)

    service: str

    @property
    def name(self) -> str:
        return self.service


class CacheTarget(BaseModel):
    """
    Cache and output settings for one bake target.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cache_from: List[str] = Field(default=[], alias="cache-from")
    cache_to: List[str] = Field(default=[], alias="cache-to")
    output: List[str] = []


class CacheConfig(BaseModel):
    """
    The whole override document: ``{"target": {<service>: CacheTarget}}``.
    """
    model_config = ConfigDict(frozen=True)

    target: Dict[str, CacheTarget] = {}

    def to_document(self) -> Dict[str, Any]:
        """
        Dictionary form with bake's hyphenated keys, ready for ``json.dump``.
        """
        return self.model_dump(by_alias=True)
