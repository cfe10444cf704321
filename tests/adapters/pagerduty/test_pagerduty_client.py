from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003
from datetime import timedelta

import httpx
import pytest

from dutysync.adapters.http_resilience import ResilientClient  # noqa: TC001
from dutysync.adapters.pagerduty import PagerDutyClient
from dutysync.config import AccountConfig, OAuthConfig, PagerDutyConfig
from dutysync.config.http_resilience import ResilienceConfig  # noqa: TC001
from dutysync.domain.auth import AccountRegistry, TokenResolver
from dutysync.domain.errors import (
    AuthError,
    InvalidArgumentsError,
    NotFoundError,
    ParseError,
    ProviderError,
    RateLimitError,
)
from tests.helpers.providers import T0, FakeAcquirer, make_client_factory


def _service_payload(service_id: str, name: str, **extra: object) -> dict[str, object]:
    return {
        "id": service_id,
        "name": name,
        "html_url": f"https://acme.pagerduty.com/service-directory/{service_id}",
        "escalation_policy": {"id": "EP1", "summary": "Primary"},
        "teams": [{"id": "T1", "summary": "Payments"}],
        "integrations": [
            {"id": "I1", "vendor": {"id": "PRO19CT"}, "integration_key": f"key-{service_id}"}
        ],
        **extra,
    }


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    config: PagerDutyConfig,
    *,
    page_size: int = 100,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> PagerDutyClient:
    resolver = TokenResolver(
        registry=AccountRegistry(),
        config_loader=lambda: config,
        acquirer=FakeAcquirer(),
    )
    return PagerDutyClient(
        resolver=resolver,
        client_factory=client_factory or make_client_factory(handler),
        page_size=page_size,
        clock=lambda: T0,
    )


LEGACY = PagerDutyConfig(legacy_account=AccountConfig(api_token="abc"))


def test_list_services_follows_pagination() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        offset = int(request.url.params["offset"])
        if offset == 0:
            return httpx.Response(
                200,
                json={
                    "services": [_service_payload("S1", "b"), _service_payload("S2", "a")],
                    "more": True,
                    "offset": 0,
                    "limit": 2,
                },
            )
        return httpx.Response(200, json={"services": [_service_payload("S3", "c")], "more": False})

    client = _client(handler, LEGACY, page_size=2)

    services = asyncio.run(client.list_services())

    assert [service.id for service in services] == ["S1", "S2", "S3"]
    assert [request.url.params["offset"] for request in requests] == ["0", "2"]
    first = requests[0]
    assert first.url.host == "api.pagerduty.com"
    assert first.url.path == "/services"
    assert first.url.params["limit"] == "2"
    assert first.url.params.get_list("include[]") == [
        "integrations",
        "teams",
        "escalation_policies",
    ]
    assert first.headers["Authorization"] == "Token token=abc"
    assert services[0].team_name == "Payments"
    assert services[0].escalation_policy_name == "Primary"
    assert services[0].integration_key_for_vendor() == "key-S1"
    assert services[0].account == "default"


def test_multi_account_uses_account_token_and_region_base_url() -> None:
    config = PagerDutyConfig(
        accounts=(
            AccountConfig(id="us", api_token="t-us", is_default=True),
            AccountConfig(id="eu", api_token="t-eu", oauth=OAuthConfig(region="eu")),
        )
    )
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"services": [_service_payload("S1", "a")]})

    client = _client(handler, config)

    services = asyncio.run(client.list_services("eu"))

    assert requests[0].url.host == "api.eu.pagerduty.com"
    assert requests[0].headers["Authorization"] == "Token token=t-eu"
    assert services[0].account == "eu"


def test_get_service_by_integration_key_queries_and_matches_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["query"] == "key-S2"
        return httpx.Response(
            200,
            json={"services": [_service_payload("S1", "a"), _service_payload("S2", "b")]},
        )

    client = _client(handler, LEGACY)

    service = asyncio.run(client.get_service_by_integration_key("key-S2"))

    assert service.id == "S2"


def test_get_service_by_integration_key_empty_result_is_not_found() -> None:
    client = _client(lambda _request: httpx.Response(200, json={"services": []}), LEGACY)

    with pytest.raises(NotFoundError):
        asyncio.run(client.get_service_by_integration_key("missing"))


def test_get_service_unwraps_service_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/services/S1"
        return httpx.Response(200, json={"service": _service_payload("S1", "Checkout")})

    service = asyncio.run(_client(handler, LEGACY).get_service("S1"))

    assert service.name == "Checkout"


def test_list_escalation_policies_returns_options() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/escalation_policies"
        return httpx.Response(
            200,
            json={"escalation_policies": [{"id": "EP1", "name": "Primary"}], "more": False},
        )

    (option,) = asyncio.run(_client(handler, LEGACY).list_escalation_policies())

    assert (option.label, option.value) == ("Primary", "EP1")


def test_missing_credential_fails_without_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    client = _client(handler, PagerDutyConfig(legacy_account=AccountConfig()))

    with pytest.raises(AuthError) as excinfo:
        asyncio.run(client.list_services())

    assert excinfo.value.status == 401


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, ProviderError),
    ],
)
def test_error_statuses_are_mapped(status: int, error: type[ProviderError]) -> None:
    client = _client(lambda _request: httpx.Response(status, json={"error": {}}), LEGACY)

    with pytest.raises(error) as excinfo:
        asyncio.run(client.get_service("S1"))

    assert excinfo.value.status == status


def test_malformed_body_is_parse_error() -> None:
    client = _client(lambda _request: httpx.Response(200, content=b"<html>"), LEGACY)

    with pytest.raises(ParseError):
        asyncio.run(client.get_service("S1"))


def _counting_factory(
    handler: Callable[[httpx.Request], httpx.Response],
    created: list[ResilientClient],
) -> Callable[[ResilienceConfig], ResilientClient]:
    factory = make_client_factory(handler)

    def counting(resilience: ResilienceConfig) -> ResilientClient:
        client = factory(resilience)
        created.append(client)
        return client

    return counting


def test_pagination_shares_one_http_session() -> None:
    created: list[ResilientClient] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["offset"] == "0":
            return httpx.Response(
                200, json={"services": [_service_payload("S1", "a")], "more": True}
            )
        return httpx.Response(200, json={"services": [_service_payload("S2", "b")]})

    factory = _counting_factory(handler, created)
    client = _client(handler, LEGACY, page_size=1, client_factory=factory)

    services = asyncio.run(client.list_services())

    assert [service.id for service in services] == ["S1", "S2"]
    assert len(created) == 1


def test_context_manager_reuses_session_across_calls() -> None:
    created: list[ResilientClient] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/escalation_policies":
            return httpx.Response(200, json={"escalation_policies": [{"id": "EP1"}]})
        return httpx.Response(200, json={"services": [_service_payload("S1", "a")]})

    client = _client(handler, LEGACY, client_factory=_counting_factory(handler, created))

    async def run() -> None:
        async with client:
            await client.list_services()
            await client.list_escalation_policies()
            await client.get_service_by_integration_key("key-S1")

    asyncio.run(run())

    assert len(created) == 1


def test_base_url_follows_reloaded_configuration() -> None:
    configs = iter(
        [
            PagerDutyConfig(accounts=(AccountConfig(id="ops", api_token="t"),)),
            PagerDutyConfig(
                accounts=(AccountConfig(id="ops", api_token="t", oauth=OAuthConfig(region="eu")),)
            ),
        ]
    )
    hosts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200, json={"service": _service_payload("S1", "a")})

    resolver = TokenResolver(
        registry=AccountRegistry(),
        config_loader=lambda: next(configs),
        acquirer=FakeAcquirer(),
    )
    client = PagerDutyClient(resolver=resolver, client_factory=make_client_factory(handler))

    async def run() -> None:
        await client.get_service("S1", "ops")
        await resolver.load_configuration()
        await client.get_service("S1", "ops")

    asyncio.run(run())

    assert hosts == ["api.pagerduty.com", "api.eu.pagerduty.com"]


def test_create_service_posts_service_with_escalation_policy() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/services"
        assert json.loads(request.content) == {
            "service": {
                "type": "service",
                "name": "Checkout",
                "description": "Checkout flow",
                "escalation_policy": {"id": "EP1", "type": "escalation_policy_reference"},
            }
        }
        return httpx.Response(201, json={"service": _service_payload("S9", "Checkout")})

    created = asyncio.run(
        _client(handler, LEGACY).create_service("Checkout", "Checkout flow", "EP1")
    )

    assert created.id == "S9"
    assert created.html_url.endswith("/S9")


def test_create_service_integration_returns_integration_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/services/S9/integrations"
        body = json.loads(request.content)["integration"]
        assert body["name"] == "Backstage"
        assert body["service"] == {"id": "S9", "type": "service_reference"}
        assert body["vendor"] == {"id": "PRO19CT", "type": "vendor_reference"}
        return httpx.Response(201, json={"integration": {"id": "I9", "integration_key": "k9"}})

    assert asyncio.run(_client(handler, LEGACY).create_service_integration("S9")) == "k9"


def test_missing_arguments_fail_without_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    client = _client(handler, LEGACY)

    with pytest.raises(InvalidArgumentsError):
        asyncio.run(client.get_service(""))
    with pytest.raises(InvalidArgumentsError):
        asyncio.run(client.create_service("Checkout", "", "EP1"))
    with pytest.raises(InvalidArgumentsError):
        asyncio.run(client.add_service_dependencies("S1", []))


def test_oncall_users_keep_first_level_deduplicated_and_sorted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/oncalls"
        assert request.url.params.get_list("escalation_policy_ids[]") == ["EP1"]
        assert request.url.params.get_list("include[]") == ["users"]
        return httpx.Response(
            200,
            json={
                "oncalls": [
                    {"escalation_level": 2, "user": {"id": "U3", "name": "Ada"}},
                    {"escalation_level": 1, "user": {"id": "U2", "name": "zoe"}},
                    {"escalation_level": 1, "user": {"id": "U1", "name": "Bob"}},
                    {"escalation_level": 1, "user": {"id": "U2", "name": "zoe"}},
                ]
            },
        )

    users = asyncio.run(_client(handler, LEGACY).list_oncall_users("EP1"))

    assert [user.id for user in users] == ["U1", "U2"]


def test_change_events_are_translated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/services/S1/change_events"
        assert request.url.params["limit"] == "30"
        return httpx.Response(
            200,
            json={
                "change_events": [
                    {
                        "id": "C1",
                        "summary": "Deploy",
                        "source": "ci",
                        "timestamp": "2026-01-01T10:00:00Z",
                        "links": [{"href": "https://ci/1", "text": "build"}],
                        "integration": [{"id": "I1", "summary": "GitHub"}],
                    }
                ]
            },
        )

    (event,) = asyncio.run(_client(handler, LEGACY).list_change_events("S1"))

    assert event.summary == "Deploy"
    assert event.timestamp is not None
    assert event.timestamp.year == 2026
    assert event.links[0].href == "https://ci/1"
    assert event.integration_names == ("GitHub",)


def test_incidents_query_open_statuses_for_service() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/incidents"
        assert request.url.params.get_list("service_ids[]") == ["S1"]
        assert request.url.params.get_list("statuses[]") == ["triggered", "acknowledged"]
        return httpx.Response(
            200,
            json={
                "incidents": [
                    {
                        "id": "Q1",
                        "title": "Checkout down",
                        "status": "triggered",
                        "urgency": "high",
                        "service": {"id": "S1", "summary": "Checkout"},
                        "assignments": [{"assignee": {"id": "U1", "summary": "Bob"}}],
                    }
                ]
            },
        )

    (incident,) = asyncio.run(_client(handler, LEGACY).list_incidents("S1"))

    assert (incident.id, incident.status, incident.urgency) == ("Q1", "triggered", "high")
    assert incident.service_name == "Checkout"
    assert incident.assignees == ("Bob",)


def test_service_standards_read_pass_flag() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/standards/scores/technical_services/S1"
        return httpx.Response(
            200,
            json={
                "resource_id": "S1",
                "resource_type": "technical_service",
                "score": {"passing": 1, "total": 2},
                "standards": [
                    {"id": "ST1", "name": "Has description", "pass": True},
                    {"id": "ST2", "name": "Has runbook", "pass": False},
                ],
            },
        )

    standards = asyncio.run(_client(handler, LEGACY).get_service_standards("S1"))

    assert (standards.passing, standards.total) == (1, 2)
    assert [standard.passed for standard in standards.standards] == [True, False]


def test_service_metrics_post_thirty_day_window() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/analytics/metrics/incidents/services"
        filters = json.loads(request.content)["filters"]
        assert filters["service_ids"] == ["S1"]
        assert filters["created_at_end"] == T0.isoformat()
        assert filters["created_at_start"] == (T0 - timedelta(days=30)).isoformat()
        return httpx.Response(
            200,
            json={"data": [{"service_id": "S1", "total_incident_count": 4}]},
        )

    (metrics,) = asyncio.run(_client(handler, LEGACY).get_service_metrics("S1"))

    assert (metrics.service_id, metrics.total_incident_count) == ("S1", 4)
    assert metrics.mean_seconds_to_resolve is None


def test_service_dependencies_list_add_and_remove() -> None:
    requests: list[httpx.Request] = []
    relationship = {
        "id": "D1",
        "dependent_service": {"id": "S1", "type": "service"},
        "supporting_service": {"id": "S2", "type": "service"},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"relationships": [relationship]})

    client = _client(handler, LEGACY)

    async def run() -> None:
        async with client:
            listed = await client.list_service_dependencies("S1")
            added = await client.add_service_dependencies("S1", ["S2"])
            removed = await client.remove_service_dependencies("S1", ["S2"])
        for dependencies in (listed, added, removed):
            assert [(d.dependent_service_id, d.supporting_service_id) for d in dependencies] == [
                ("S1", "S2")
            ]

    asyncio.run(run())

    assert [request.url.path for request in requests] == [
        "/service_dependencies/technical_services/S1",
        "/service_dependencies/associate",
        "/service_dependencies/disassociate",
    ]
    assert json.loads(requests[1].content) == {
        "relationships": [
            {
                "supporting_service": {"id": "S2", "type": "service"},
                "dependent_service": {"id": "S1", "type": "service"},
            }
        ]
    }
