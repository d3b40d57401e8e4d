# (c) Copyright Datacraft, 2026
import logging

from functools import lru_cache
from enum import Enum

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class StoreBackend(str, Enum):
    MEMORY = "memory"
    SQL = "sql"


class ShardSettings(BaseModel):
    tenants: list[str] = Field(default_factory=list)
    policy_path: str | None = None
    max_concurrency: int | None = Field(default=None, gt=0)


class Settings(BaseSettings):
    api_key: str = Field(default="", description="Bearer credential for check and debug endpoints")

    # Evaluation
    query_timeout: float = Field(gt=0, default=1.0, description="Maximum seconds per bulk call")
    default_tenant: str = "default"
    debug_enabled: bool = True
    policy_path: str | None = None
    custom_rules_path: str | None = None

    # Attribute store
    attribute_store: StoreBackend = StoreBackend.MEMORY
    data_path: str | None = None
    db_url: str | None = None

    # Sharding
    shards: dict[str, ShardSettings] = Field(default_factory=dict)
    default_shard: str | None = "default"
    max_concurrency: int = Field(gt=0, default=64)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix='pdp_')


@lru_cache()
def get_settings():
    return Settings()
