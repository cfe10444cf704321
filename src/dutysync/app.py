"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dutysync.adapters.backstage import BackstageCatalogClient
from dutysync.adapters.http_resilience import ResilientClient, default_client_factory
from dutysync.adapters.pagerduty import OAuthTokenAcquirer, PagerDutyClient
from dutysync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    is_started,
    startup,
)
from dutysync.config import get_backstage_config, get_pagerduty_config
from dutysync.config.http_resilience import ResilienceConfig
from dutysync.domain import service_mapping, service_provisioning
from dutysync.domain.auth import AccountRegistry, TokenResolver
from dutysync.domain.model import EntityMapping, parse_entity_ref, stringify_entity_ref
from dutysync.domain.ports.unit_of_work import MappingUnitOfWork

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from dutysync.domain.auth import ConfigLoader
    from dutysync.domain.model import (
        ChangeEvent,
        CreatedService,
        EscalationPolicyOption,
        Incident,
        OnCallUser,
        ReconciledMapping,
        ServiceDependency,
        ServiceMetrics,
        ServiceStandards,
        Setting,
    )
    from dutysync.domain.ports import CatalogReader

UnitOfWorkFactory = Callable[[], MappingUnitOfWork]
ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)


@dataclass(slots=True)
class PagerDutyContext:
    """The resolver and provider client sharing one credential registry."""

    resolver: TokenResolver
    client: PagerDutyClient

    async def accounts(self) -> tuple[str | None, ...]:
        """Account ids to query; ``(None,)`` addresses the single legacy account.

        Accounts of a multi-account configuration that hold no credential are
        skipped so one broken account does not abort a pass over all of them.
        """

        registry = self.resolver.registry
        if not registry.initialized:
            await self.resolver.load_configuration()
        if registry.legacy_mode:
            return (None,)
        usable = registry.credentialed_account_ids()
        skipped = [account for account in registry.account_ids() if account not in usable]
        if skipped:
            log.warning(
                "Skipping PagerDuty account(s) without a credential: %s", ", ".join(skipped)
            )
        return usable


def build_pagerduty_context(
    *,
    config_loader: ConfigLoader = get_pagerduty_config,
    registry: AccountRegistry | None = None,
    client_factory: ClientFactory = default_client_factory,
) -> PagerDutyContext:
    """Wire a resolver and client; configuration is only read on the first token lookup."""

    resolver = TokenResolver(
        registry=registry or AccountRegistry(),
        config_loader=config_loader,
        acquirer=OAuthTokenAcquirer(client_factory=client_factory),
    )
    return PagerDutyContext(
        resolver=resolver,
        client=PagerDutyClient(resolver=resolver, client_factory=client_factory),
    )


def _default_unit_of_work() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyMappingUnitOfWork


@asynccontextmanager
async def _catalog_session(catalog: CatalogReader | None) -> AsyncIterator[CatalogReader]:
    if catalog is not None:
        yield catalog
        return
    async with BackstageCatalogClient(get_backstage_config()) as client:
        yield client


async def _with_client[T](
    pagerduty: PagerDutyContext | None,
    operation: Callable[[PagerDutyClient], Awaitable[T]],
) -> T:
    context = pagerduty or build_pagerduty_context()
    async with context.client as client:
        return await operation(client)


async def list_entity_mappings(
    *,
    pagerduty: PagerDutyContext | None = None,
    catalog: CatalogReader | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[ReconciledMapping]:
    """Reconcile every configured account's services with the catalog."""

    context = pagerduty or build_pagerduty_context()
    accounts = await context.accounts()
    log.info("Building entity mappings for %d account(s)", len(accounts))
    async with context.client as directory, _catalog_session(catalog) as catalog_reader:
        return await service_mapping.build_entity_mappings(
            directory=directory,
            catalog=catalog_reader,
            unit_of_work_factory=unit_of_work_factory or _default_unit_of_work(),
            accounts=accounts,
        )


async def map_service(
    *,
    service_id: str,
    entity_ref: str,
    integration_key: str = "",
    account: str = "",
    catalog: CatalogReader | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> str:
    """Store the mapping for ``service_id``; an empty ``entity_ref`` clears it."""

    normalized_ref = stringify_entity_ref(*parse_entity_ref(entity_ref)) if entity_ref else ""
    mapping = EntityMapping(
        service_id=service_id,
        entity_ref=normalized_ref,
        integration_key=integration_key,
        account=account,
    )
    async with _catalog_session(catalog) as catalog_reader:
        return await service_mapping.save_entity_mapping(
            mapping,
            catalog=catalog_reader,
            unit_of_work_factory=unit_of_work_factory or _default_unit_of_work(),
        )


async def escalation_policy_options(
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[EscalationPolicyOption]:
    context = pagerduty or build_pagerduty_context()
    accounts = await context.accounts()
    async with context.client as client:
        return await service_mapping.list_escalation_policies(client, accounts)


async def has_credential(
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> bool:
    context = pagerduty or build_pagerduty_context()
    return bool(await context.resolver.resolve_token(account))


async def create_service(
    *,
    name: str,
    description: str,
    escalation_policy_id: str,
    account: str | None = None,
    pagerduty: PagerDutyContext | None = None,
) -> CreatedService:
    """Create a PagerDuty service with a Backstage integration attached."""

    return await _with_client(
        pagerduty,
        lambda client: service_provisioning.provision_service(
            client,
            name=name,
            description=description,
            escalation_policy_id=escalation_policy_id,
            account=account,
        ),
    )


async def oncall_users(
    escalation_policy_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[OnCallUser]:
    return await _with_client(
        pagerduty, lambda client: client.list_oncall_users(escalation_policy_id, account)
    )


async def service_change_events(
    service_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[ChangeEvent]:
    return await _with_client(
        pagerduty, lambda client: client.list_change_events(service_id, account)
    )


async def service_incidents(
    service_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[Incident]:
    return await _with_client(pagerduty, lambda client: client.list_incidents(service_id, account))


async def service_standards(
    service_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> ServiceStandards:
    return await _with_client(
        pagerduty, lambda client: client.get_service_standards(service_id, account)
    )


async def service_metrics(
    service_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[ServiceMetrics]:
    return await _with_client(
        pagerduty, lambda client: client.get_service_metrics(service_id, account)
    )


async def service_dependencies(
    service_id: str,
    account: str | None = None,
    *,
    pagerduty: PagerDutyContext | None = None,
) -> list[ServiceDependency]:
    return await _with_client(
        pagerduty, lambda client: client.list_service_dependencies(service_id, account)
    )


async def change_service_dependencies(
    service_id: str,
    dependency_ids: Sequence[str],
    *,
    remove: bool = False,
    account: str | None = None,
    pagerduty: PagerDutyContext | None = None,
) -> list[ServiceDependency]:
    """Add (or with ``remove`` drop) the services ``service_id`` depends on."""

    if remove:
        return await _with_client(
            pagerduty,
            lambda client: client.remove_service_dependencies(service_id, dependency_ids, account),
        )
    return await _with_client(
        pagerduty,
        lambda client: client.add_service_dependencies(service_id, dependency_ids, account),
    )


def read_setting(
    setting_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Setting | None:
    return service_mapping.get_setting(unit_of_work_factory or _default_unit_of_work(), setting_id)


def read_settings(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> list[Setting]:
    return service_mapping.list_settings(unit_of_work_factory or _default_unit_of_work())


def write_setting(
    setting_id: str,
    value: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> str:
    stored_id = service_mapping.put_setting(
        unit_of_work_factory or _default_unit_of_work(), setting_id, value
    )
    log.info("Stored setting %s", stored_id)
    return stored_id
