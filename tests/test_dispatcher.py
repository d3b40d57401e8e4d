"""Bulk check dispatch: ordering, tenant isolation and timeouts."""

import pytest

from conftest import make_pdp
from pdp_server.dispatch import PolicyShard, ShardRouter
from pdp_server.errors import CheckTimeoutError, RoutingError
from pdp_server.schema import CheckError, CheckRequest, CheckResult, ErrorKind


def req(user, action, resource):
    return CheckRequest(user=user, action=action, resource=resource)


@pytest.mark.asyncio
async def test_empty_batch(pdp):
    assert await pdp.bulk_check([]) == []


@pytest.mark.asyncio
async def test_bulk_check_example(pdp):
    results = await pdp.bulk_check([
        req("john@doe.com", "read", "document"),
        req("jane@doe.com", "create", "document"),
    ])

    assert [r.allow for r in results] == [True, False]
    assert all(r.tenant == "default" for r in results)


@pytest.mark.asyncio
async def test_results_are_index_aligned_across_tenants(pdp):
    requests = [
        req("u1", "read", "file:report"),
        req("jane@doe.com", "delete", {"type": "file", "tenant": "acme"}),
        req("u3", "read", "file:report"),
        req("john@doe.com", "delete", {"type": "file", "tenant": "acme"}),
        req("u2", "read", "file:report"),
        req("jane@doe.com", "read", "file:acme-plan"),
    ]

    results = await pdp.bulk_check(requests)

    assert len(results) == len(requests)
    assert [r.allow for r in results] == [True, True, False, False, True, True]
    assert [r.tenant for r in results] == ["default", "acme", "default", "acme", "default", "acme"]


@pytest.mark.asyncio
async def test_ownership_by_list(pdp):
    assert (await pdp.check("u1", "read", "file:report")).allow
    assert not (await pdp.check("u3", "read", "file:report")).allow


@pytest.mark.asyncio
async def test_inline_attributes_override_for_one_request_only(store, policy):
    pdp = make_pdp(store, policy)
    resource = {"type": "file", "key": "report", "attributes": {"owners": ["u3"]}}

    results = await pdp.bulk_check([
        req("u3", "read", resource),
        req("u3", "read", "file:report"),
    ])

    assert [r.allow for r in results] == [True, False]
    assert (await store.get_resource("file", "report")).attributes == {"owners": ["u1", "u2"]}


@pytest.mark.asyncio
async def test_routing_errors_are_scoped_to_their_request(pdp):
    results = await pdp.bulk_check([
        req("u1", "read", "file:report"),
        req("u1", "read", {"type": "file", "tenant": "unknown"}),
        req("u1", "read", {"type": "file", "key": "report", "tenant": "acme"}),
        req("u2", "read", "file:report"),
    ])

    assert isinstance(results[0], CheckResult) and results[0].allow
    assert isinstance(results[1], CheckError)
    assert results[1].error == ErrorKind.ROUTING
    assert results[1].tenant == "unknown"
    assert isinstance(results[2], CheckError)
    assert results[2].error == ErrorKind.ROUTING
    assert isinstance(results[3], CheckResult) and results[3].allow


@pytest.mark.asyncio
async def test_tenant_without_shard(store, policy):
    pdp = make_pdp(store, policy, assignments={"main": ["default"]}, default_shard=None)

    results = await pdp.bulk_check([
        req("jane@doe.com", "read", {"type": "file", "tenant": "acme"}),
        req("u1", "read", "file:report"),
    ])

    assert results[0].error == ErrorKind.ROUTING
    assert results[1].allow

    with pytest.raises(RoutingError):
        await pdp.check("jane@doe.com", "read", {"type": "file", "tenant": "acme"})


@pytest.mark.asyncio
async def test_timeout_only_affects_slow_tenant(slow_acme_store, policy):
    pdp = make_pdp(
        slow_acme_store, policy,
        assignments={"t1": ["acme"], "t2": ["default"]},
        default_shard=None,
        timeout=0.2,
    )
    requests = [
        req("jane@doe.com", "read", {"type": "file", "tenant": "acme"}),
        req("u1", "read", "file:report"),
        req("jane@doe.com", "create", {"type": "document", "tenant": "acme"}),
        req("u3", "read", "file:report"),
    ]

    results = await pdp.bulk_check(requests)

    assert len(results) == 4
    for index in (0, 2):
        assert isinstance(results[index], CheckError)
        assert results[index].error == ErrorKind.TIMEOUT
        assert results[index].tenant == "acme"
    assert isinstance(results[1], CheckResult) and results[1].allow
    assert isinstance(results[3], CheckResult) and not results[3].allow


@pytest.mark.asyncio
async def test_unexpected_failure_is_scoped_to_its_request(store, policy):
    class FlakyShard(PolicyShard):
        async def check(self, request, tenant):
            if request.user.key == "u2":
                raise RuntimeError("shard exploded")
            return await super().check(request, tenant)

    pdp = make_pdp(store, policy)
    shard = pdp.router.shards["main"]
    flaky = FlakyShard("main", shard.policy, shard.resolver)
    pdp.router = pdp.dispatcher.router = ShardRouter({"main": flaky}, default_shard="main")

    results = await pdp.bulk_check([
        req("u1", "read", "file:report"),
        req("u2", "read", "file:report"),
    ])

    assert results[0].allow
    assert results[1].error == ErrorKind.INTERNAL
    assert "shard exploded" in results[1].message


@pytest.mark.asyncio
async def test_check_all_tenants(pdp):
    assert await pdp.check_all_tenants("jane@doe.com", "delete", "file") == ["acme"]
    assert await pdp.check_all_tenants("jane@doe.com", "read", "document") == ["acme", "default"]
    assert await pdp.check_all_tenants("john@doe.com", "read", "document") == ["default"]
    assert await pdp.check_all_tenants("u3", "delete", "file") == []


@pytest.mark.asyncio
async def test_repeated_checks_are_deterministic(pdp):
    request = req("u1", "read", "file:report")

    results = [await pdp.check_request(request) for _ in range(5)]

    assert all(r == results[0] for r in results)


def test_router_rejects_conflicting_assignments(store, policy):
    with pytest.raises(ValueError):
        make_pdp(store, policy, assignments={"a": ["default"], "b": ["default"]})


@pytest.mark.asyncio
async def test_single_check_timeout_raises(slow_pdp):
    with pytest.raises(CheckTimeoutError) as exc_info:
        await slow_pdp.check("jane@doe.com", "read", {"type": "file", "tenant": "acme"})

    assert exc_info.value.tenant == "acme"
    assert (await slow_pdp.check("u1", "read", "file:report")).allow
