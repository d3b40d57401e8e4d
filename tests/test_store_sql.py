import asyncio
import time

import pytest

from conftest import make_pdp
from pdp_server.db import Base, Tenant, User, RoleAssignment, ResourceInstance, get_engine, get_session_factory
from pdp_server.schema import CheckError, CheckRequest, CheckResult, ErrorKind
from pdp_server.store.sql import SQLAttributeStore


@pytest.fixture
def session_factory(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'pdp.db'}")
    Base.metadata.create_all(engine)
    session_factory = get_session_factory(engine)

    with session_factory() as db:
        db.add_all([
            Tenant(key="default", attributes={"plan": "pro"}),
            Tenant(key="acme", attributes={}),
            User(key="u1", attributes={"dept": "eng"}),
            User(key="u2", attributes={}),
        ])
        db.flush()
        db.add_all([
            RoleAssignment(user_key="u1", role="member", tenant_key="default"),
            RoleAssignment(user_key="u1", role="admin", tenant_key="acme"),
            RoleAssignment(user_key="u1", role="member", tenant_key="acme"),
            RoleAssignment(user_key="u2", role="member", tenant_key="default"),
            ResourceInstance(
                resource_type="file",
                key="report",
                tenant_key="default",
                attributes={"owners": ["u2"]},
            ),
        ])
        db.commit()

    yield session_factory
    engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SQLAttributeStore:
    return SQLAttributeStore(session_factory)


@pytest.mark.asyncio
async def test_reads(sql_store):
    tenant = await sql_store.get_tenant("default")
    assert tenant.attributes == {"plan": "pro"}
    assert await sql_store.get_tenant("missing") is None
    assert await sql_store.list_tenants() == ["acme", "default"]

    user = await sql_store.get_user("u1")
    assert user.attributes == {"dept": "eng"}
    assert await sql_store.get_user("nobody") is None

    assert await sql_store.get_user_roles("u1", "acme") == ["admin", "member"]
    assert await sql_store.get_user_roles("u1", "default") == ["member"]
    assert await sql_store.get_user_tenants("u1") == ["acme", "default"]
    assert await sql_store.get_user_tenants("nobody") == []


@pytest.mark.asyncio
async def test_get_resource(sql_store):
    resource = await sql_store.get_resource("file", "report")

    assert resource.tenant == "default"
    assert resource.attributes == {"owners": ["u2"]}
    assert await sql_store.get_resource("file", "missing") is None
    assert await sql_store.get_resource("document", "report") is None


@pytest.mark.asyncio
async def test_check_against_sql_store(sql_store, policy):
    pdp = make_pdp(sql_store, policy)

    results = await pdp.bulk_check([
        CheckRequest(user="u2", action="read", resource="file:report"),
        CheckRequest(user="u1", action="read", resource="file:report"),
        CheckRequest(user="u1", action="delete", resource={"type": "file", "tenant": "acme"}),
    ])

    assert [r.allow for r in results] == [True, False, True]


class SlowTenantSQLStore(SQLAttributeStore):
    """Blocking query for one tenant, as a stalled database connection would be."""

    def _get_tenant(self, tenant_key):
        if tenant_key == "acme":
            time.sleep(1.0)
        return super()._get_tenant(tenant_key)


@pytest.mark.asyncio
async def test_blocking_query_does_not_stall_other_tenants(session_factory, policy):
    pdp = make_pdp(SlowTenantSQLStore(session_factory), policy, timeout=0.2)
    loop = asyncio.get_running_loop()

    started = loop.time()
    results = await pdp.bulk_check([
        CheckRequest(user="u1", action="delete", resource={"type": "file", "tenant": "acme"}),
        CheckRequest(user="u2", action="read", resource="file:report"),
    ])
    elapsed = loop.time() - started

    assert elapsed < 0.8
    assert isinstance(results[0], CheckError)
    assert results[0].error == ErrorKind.TIMEOUT
    assert isinstance(results[1], CheckResult) and results[1].allow
