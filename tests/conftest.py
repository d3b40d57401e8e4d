import asyncio
from pathlib import Path

import pytest

from pdp_server.abac import PolicySet
from pdp_server.dispatch import PolicyShard, ShardRouter
from pdp_server.pdp import PolicyDecisionPoint
from pdp_server.plugins import CustomAttributeRegistry
from pdp_server.resolver import AttributeResolver
from pdp_server.store import InMemoryAttributeStore

SAMPLE_DIR = Path(__file__).parent.parent / "sample"


class SlowTenantStore(InMemoryAttributeStore):
    """Store whose reads for one tenant never finish in time."""

    def __init__(self, slow_tenant: str, **kwargs):
        super().__init__(**kwargs)
        self.slow_tenant = slow_tenant

    async def get_tenant(self, tenant_key):
        if tenant_key == self.slow_tenant:
            await asyncio.sleep(10)
        return await super().get_tenant(tenant_key)


@pytest.fixture
def sample_dir() -> Path:
    return SAMPLE_DIR


@pytest.fixture
def store() -> InMemoryAttributeStore:
    return InMemoryAttributeStore.from_dict({
        "tenants": [
            {"key": "default", "attributes": {"plan": "pro"}},
            {"key": "acme", "attributes": {"plan": "free"}},
        ],
        "users": [
            {"key": "john@doe.com", "attributes": {"dept": "finance"}},
            {"key": "jane@doe.com", "attributes": {"dept": "legal"}},
            {"key": "u1"},
            {"key": "u2"},
            {"key": "u3"},
        ],
        "role_assignments": [
            {"user": "john@doe.com", "role": "member", "tenant": "default"},
            {"user": "jane@doe.com", "role": "member", "tenant": "default"},
            {"user": "jane@doe.com", "role": "admin", "tenant": "acme"},
            {"user": "u1", "role": "member", "tenant": "default"},
            {"user": "u2", "role": "member", "tenant": "default"},
            {"user": "u3", "role": "member", "tenant": "default"},
        ],
        "resources": [
            {
                "type": "file",
                "key": "report",
                "tenant": "default",
                "attributes": {"owners": ["u1", "u2"]},
            },
            {
                "type": "file",
                "key": "acme-plan",
                "tenant": "acme",
                "attributes": {"owners": ["jane@doe.com"], "secret": "acme-only"},
            },
        ],
    })


@pytest.fixture
def policy() -> PolicySet:
    return PolicySet.model_validate({
        "roles": {
            "admin": ["document:*", "file:*"],
            "member": [],
        },
        "rules": [
            {
                "name": "members-read-documents",
                "actions": ["read"],
                "resource_types": ["document"],
                "tenant_members": True,
            },
            {
                "name": "owners-read-files",
                "actions": ["read"],
                "resource_types": ["file"],
                "resource_conditions": {"owners": {"contains": {"$ref": "user.key"}}},
            },
        ],
    })


def make_pdp(
    store,
    policy: PolicySet,
    registry: CustomAttributeRegistry | None = None,
    assignments: dict[str, list[str]] | None = None,
    default_shard: str | None = "main",
    timeout: float = 1.0,
) -> PolicyDecisionPoint:
    resolver = AttributeResolver(store, default_tenant="default")
    names = set(assignments or {}) | ({default_shard} if default_shard else set())
    shards = {
        name: PolicyShard(name=name, policy=policy, resolver=resolver, registry=registry)
        for name in names
    }
    router = ShardRouter.from_assignments(shards, assignments or {}, default_shard=default_shard)
    return PolicyDecisionPoint(resolver, router, timeout=timeout)


@pytest.fixture
def pdp(store, policy) -> PolicyDecisionPoint:
    return make_pdp(store, policy)


@pytest.fixture
def slow_acme_store(store) -> SlowTenantStore:
    return SlowTenantStore(
        "acme",
        tenants=store._tenants.values(),
        users=store._users.values(),
        role_assignments=store._assignments,
        resources=store._resources.values(),
    )


@pytest.fixture
def slow_pdp(slow_acme_store, policy) -> PolicyDecisionPoint:
    return make_pdp(slow_acme_store, policy, timeout=0.2)
