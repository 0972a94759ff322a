"""Probe policy model and the configuration resolver.

A monitor configuration has two levels: a :class:`GlobalPolicy` holding
process-wide fallback values, and a sequence of :class:`EntityPolicy` entries
that may override any of them. Entity fields that were not configured are
``None``; resolution fills them from the global policy. An explicit ``0`` is a
real value (for example "zero retries") and is never replaced.

All types here are frozen. :func:`resolve_config` produces the resolved
configuration once at start-up and the result is handed to the monitor as an
immutable value.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum


class PolicyKey(StrEnum):
    """Keys accepted by :func:`resolve_value`."""

    TIMEOUT = "timeout"
    RETRIES = "retries"
    RETRY_WAIT = "retry_wait"
    PROVIDER_TOKEN = "provider_token"
    PROVIDER_ACCOUNT_ID = "provider_account_id"
    PROVIDER_ZONE_ID = "provider_zone_id"


NUMERIC_KEYS = frozenset({PolicyKey.TIMEOUT, PolicyKey.RETRIES, PolicyKey.RETRY_WAIT})

# PolicyKey -> attribute name on GlobalPolicy/EntityPolicy or ProviderCredentials
_POLICY_ATTRS: dict[PolicyKey, str] = {
    PolicyKey.TIMEOUT: "timeout_ms",
    PolicyKey.RETRIES: "retries",
    PolicyKey.RETRY_WAIT: "retry_wait_ms",
    PolicyKey.PROVIDER_TOKEN: "token",
    PolicyKey.PROVIDER_ACCOUNT_ID: "account_id",
    PolicyKey.PROVIDER_ZONE_ID: "zone_id",
}


@dataclass(frozen=True)
class ProviderCredentials:
    """Credentials for the edge-provider API client.

    Attributes:
        token: API token used to authenticate requests.
        account_id: Provider account identifier.
        zone_id: Provider zone identifier.
    """

    token: str | None = None
    account_id: str | None = None
    zone_id: str | None = None

    def merged_with(self, fallback: ProviderCredentials) -> ProviderCredentials:
        """Return credentials with unset fields taken from ``fallback``."""
        return ProviderCredentials(
            token=self.token or fallback.token,
            account_id=self.account_id or fallback.account_id,
            zone_id=self.zone_id or fallback.zone_id,
        )


@dataclass(frozen=True)
class EffectivePolicy:
    """Fully-resolved probe policy for one entity.

    Attributes:
        timeout_ms: Per-attempt request timeout in milliseconds.
        retries: Number of attempts per server.
        retry_wait_ms: Wait after each unsuccessful attempt in milliseconds.
    """

    timeout_ms: int
    retries: int
    retry_wait_ms: int


@dataclass(frozen=True)
class GlobalPolicy:
    """Process-wide fallback policy."""

    timeout_ms: int = 0
    retries: int = 0
    retry_wait_ms: int = 0
    provider: ProviderCredentials = field(default_factory=ProviderCredentials)


@dataclass(frozen=True)
class EntityPolicy:
    """A named group of servers sharing one probe policy.

    Attributes:
        name: Unique, non-empty entity name.
        servers: Endpoints to probe, in order (URL or host:port).
        timeout_ms: Timeout override, or None to inherit.
        retries: Attempt-count override, or None to inherit.
        retry_wait_ms: Retry wait override, or None to inherit.
        provider: Per-field credential overrides.
    """

    name: str
    servers: tuple[str, ...] = ()
    timeout_ms: int | None = None
    retries: int | None = None
    retry_wait_ms: int | None = None
    provider: ProviderCredentials = field(default_factory=ProviderCredentials)

    @property
    def is_resolved(self) -> bool:
        """True when every policy field has a value."""
        return None not in (self.timeout_ms, self.retries, self.retry_wait_ms)

    def effective(self) -> EffectivePolicy:
        """Return the resolved policy triple.

        Raises:
            ValueError: If the entity has not been through :func:`resolve`.
        """
        if self.timeout_ms is None or self.retries is None or self.retry_wait_ms is None:
            raise ValueError(f"Entity '{self.name}' has unresolved policy fields")
        return EffectivePolicy(
            timeout_ms=self.timeout_ms,
            retries=self.retries,
            retry_wait_ms=self.retry_wait_ms,
        )


@dataclass(frozen=True)
class MonitorConfig:
    """Global policy plus the ordered entity list."""

    global_policy: GlobalPolicy = field(default_factory=GlobalPolicy)
    entities: tuple[EntityPolicy, ...] = ()

    def find_entity(self, name: str) -> EntityPolicy | None:
        """Return the entity called ``name``, or None."""
        if not name:
            return None
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None


def _resolve_entity(global_policy: GlobalPolicy, entity: EntityPolicy) -> EntityPolicy:
    return replace(
        entity,
        timeout_ms=global_policy.timeout_ms if entity.timeout_ms is None else entity.timeout_ms,
        retries=global_policy.retries if entity.retries is None else entity.retries,
        retry_wait_ms=(
            global_policy.retry_wait_ms if entity.retry_wait_ms is None else entity.retry_wait_ms
        ),
        provider=entity.provider.merged_with(global_policy.provider),
    )


def resolve(
    global_policy: GlobalPolicy, entities: tuple[EntityPolicy, ...] | list[EntityPolicy]
) -> tuple[EntityPolicy, ...]:
    """Fill every unset entity field from the global policy.

    Never fails and never modifies its input. Applying it again to its own
    output returns an equal result.

    Args:
        global_policy: Fallback values.
        entities: Entities as loaded from configuration.

    Returns:
        A new tuple of entities with every policy field set.
    """
    return tuple(_resolve_entity(global_policy, entity) for entity in entities)


def resolve_config(config: MonitorConfig) -> MonitorConfig:
    """Return ``config`` with all entities resolved against its global policy."""
    return replace(config, entities=resolve(config.global_policy, config.entities))


def _lookup(policy: GlobalPolicy | EntityPolicy, key: PolicyKey) -> int | str | None:
    attr = _POLICY_ATTRS[key]
    if key in NUMERIC_KEYS:
        return getattr(policy, attr)
    return getattr(policy.provider, attr)


def resolve_value(config: MonitorConfig, name: str, key: PolicyKey | str) -> int | str:
    """Look up one setting for an entity by name, falling back to global.

    An entity value wins when it is present: not None, and not empty for
    credential keys. Otherwise the global value is used. If that is unset
    too, the result is ``0`` for numeric keys and ``""`` for credential keys.
    An empty or unknown ``name`` goes straight to the global scope.

    Args:
        config: Monitor configuration, resolved or not.
        name: Entity name; empty for global scope.
        key: A :class:`PolicyKey` or its string value.

    Returns:
        The resolved value.

    Raises:
        ValueError: If ``key`` is not a known policy key.
    """
    policy_key = PolicyKey(key)

    entity = config.find_entity(name)
    if entity is not None:
        value = _lookup(entity, policy_key)
        if value is not None and value != "":
            return value

    value = _lookup(config.global_policy, policy_key)
    if value is not None:
        return value
    return 0 if policy_key in NUMERIC_KEYS else ""


__all__ = [
    "EffectivePolicy",
    "EntityPolicy",
    "GlobalPolicy",
    "MonitorConfig",
    "NUMERIC_KEYS",
    "PolicyKey",
    "ProviderCredentials",
    "resolve",
    "resolve_config",
    "resolve_value",
]
