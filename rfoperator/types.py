"""RedisFailover resource model: specs, defaults and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

GROUP_NAME = "databases.spotahome.com"
VERSION = "v1"

RF_KIND = "RedisFailover"
RF_NAME = "redisfailover"
RF_NAME_PLURAL = "redisfailovers"
RF_SCOPE = "Namespaced"

DEFAULT_REDIS_NUMBER = 3
DEFAULT_SENTINEL_NUMBER = 3
DEFAULT_SENTINEL_EXPORTER_IMAGE = "quay.io/oliver006/redis_exporter:v1.33.0-alpine"
DEFAULT_EXPORTER_IMAGE = "quay.io/oliver006/redis_exporter:v1.33.0-alpine"
DEFAULT_IMAGE = "redis:6.2.6-alpine"
DEFAULT_REDIS_PORT = "6379"

DEFAULT_SENTINEL_CUSTOM_CONFIG: tuple[str, ...] = (
    "down-after-milliseconds 5000",
    "failover-timeout 10000",
)
DEFAULT_REDIS_CUSTOM_CONFIG: tuple[str, ...] = ("replica-priority 100",)
BOOTSTRAPPING_REDIS_CUSTOM_CONFIG: tuple[str, ...] = ("replica-priority 0",)

MAX_NAME_LENGTH = 48


class ValidationError(ValueError):
    """Raised when a RedisFailover holds values that cannot be accepted."""


@dataclass(frozen=True)
class GroupVersionKind:
    """A kind qualified by its API group and version."""

    group: str
    version: str
    kind: str

    @property
    def group_kind(self) -> tuple[str, str]:
        """The (group, kind) pair without the version."""
        return (self.group, self.kind)

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


def version_kind(kind: str) -> GroupVersionKind:
    """Qualify an unqualified kind with this API's group and version."""
    return GroupVersionKind(GROUP_NAME, VERSION, kind)


def kind(kind: str) -> tuple[str, str]:
    """Qualify an unqualified kind with this API's group: (group, kind)."""
    return version_kind(kind).group_kind


def resource(resource: str) -> tuple[str, str]:
    """Qualify an unqualified resource with this API's group: (group, resource)."""
    return (GROUP_NAME, resource)


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class RedisCommandRename:
    """A "rename-command" configuration entry."""

    from_: str = ""
    to: str = ""


@dataclass
class RedisExporter:
    enabled: bool = False
    image: str = ""
    image_pull_policy: str = ""
    container_security_context: Optional[dict[str, Any]] = None
    args: list[str] = field(default_factory=list)
    env: list[dict[str, Any]] = field(default_factory=list)
    resources: Optional[dict[str, Any]] = None


@dataclass
class SentinelExporter:
    enabled: bool = False
    image: str = ""
    image_pull_policy: str = ""
    container_security_context: Optional[dict[str, Any]] = None
    args: list[str] = field(default_factory=list)
    env: list[dict[str, Any]] = field(default_factory=list)
    resources: Optional[dict[str, Any]] = None


@dataclass
class SentinelConfigCopy:
    container_security_context: Optional[dict[str, Any]] = None


@dataclass
class EmbeddedObjectMetadata:
    """The subset of object metadata relevant to embedded resources."""

    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class EmbeddedPersistentVolumeClaim:
    api_version: str = ""
    kind: str = ""
    metadata: EmbeddedObjectMetadata = field(default_factory=EmbeddedObjectMetadata)
    spec: dict[str, Any] = field(default_factory=dict)
    status: dict[str, Any] = field(default_factory=dict)


@dataclass
class RedisStorage:
    keep_after_deletion: bool = False
    empty_dir: Optional[dict[str, Any]] = None
    persistent_volume_claim: Optional[EmbeddedPersistentVolumeClaim] = None


@dataclass
class RedisSettings:
    image: str = ""
    image_pull_policy: str = ""
    replicas: int = 0
    resources: dict[str, Any] = field(default_factory=dict)
    custom_config: list[str] = field(default_factory=list)
    custom_command_renames: list[RedisCommandRename] = field(default_factory=list)
    command: list[str] = field(default_factory=list)
    shutdown_config_map: str = ""
    storage: RedisStorage = field(default_factory=RedisStorage)
    exporter: RedisExporter = field(default_factory=RedisExporter)
    affinity: Optional[dict[str, Any]] = None
    security_context: Optional[dict[str, Any]] = None
    container_security_context: Optional[dict[str, Any]] = None
    image_pull_secrets: list[str] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    node_selector: dict[str, str] = field(default_factory=dict)
    pod_annotations: dict[str, str] = field(default_factory=dict)
    service_annotations: dict[str, str] = field(default_factory=dict)
    host_network: bool = False
    dns_policy: str = ""
    priority_class_name: str = ""
    service_account_name: str = ""
    termination_grace_period_seconds: int = 0


@dataclass
class SentinelSettings:
    image: str = ""
    image_pull_policy: str = ""
    replicas: int = 0
    resources: dict[str, Any] = field(default_factory=dict)
    custom_config: list[str] = field(default_factory=list)
    command: list[str] = field(default_factory=list)
    affinity: Optional[dict[str, Any]] = None
    security_context: Optional[dict[str, Any]] = None
    container_security_context: Optional[dict[str, Any]] = None
    image_pull_secrets: list[str] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    node_selector: dict[str, str] = field(default_factory=dict)
    pod_annotations: dict[str, str] = field(default_factory=dict)
    service_annotations: dict[str, str] = field(default_factory=dict)
    exporter: SentinelExporter = field(default_factory=SentinelExporter)
    config_copy: SentinelConfigCopy = field(default_factory=SentinelConfigCopy)
    host_network: bool = False
    dns_policy: str = ""
    priority_class_name: str = ""
    service_account_name: str = ""


@dataclass
class AuthSettings:
    secret_path: str = ""


@dataclass
class BootstrapSettings:
    """Settings of an external node the failover replicates from."""

    host: str = ""
    port: str = ""
    allow_sentinels: bool = False


@dataclass
class RedisFailoverSpec:
    redis: RedisSettings = field(default_factory=RedisSettings)
    sentinel: SentinelSettings = field(default_factory=SentinelSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    label_whitelist: list[str] = field(default_factory=list)
    bootstrap_node: Optional[BootstrapSettings] = None


@dataclass
class RedisFailover:
    """A Redis failover: a group of redis nodes managed by sentinels."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: RedisFailoverSpec = field(default_factory=RedisFailoverSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    def bootstrapping(self) -> bool:
        """True when a bootstrap node is given in the spec."""
        return self.spec.bootstrap_node is not None

    def sentinels_allowed(self) -> bool:
        """True unless bootstrapping with sentinels disallowed."""
        node = self.spec.bootstrap_node
        return node is None or node.allow_sentinels

    def validate(self) -> None:
        """Fill in defaults and check the values; raise ValidationError if invalid."""
        if len(self.metadata.name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"name length can't be higher than {MAX_NAME_LENGTH}"
            )

        initial_redis_config = DEFAULT_REDIS_CUSTOM_CONFIG
        node = self.spec.bootstrap_node
        if node is not None:
            if not node.host:
                raise ValidationError("BootstrapNode must include a host when provided")
            if not node.port:
                node.port = DEFAULT_REDIS_PORT
            initial_redis_config = BOOTSTRAPPING_REDIS_CUSTOM_CONFIG

        redis = self.spec.redis
        sentinel = self.spec.sentinel

        redis.custom_config = [*initial_redis_config, *redis.custom_config]

        if not redis.image:
            redis.image = DEFAULT_IMAGE
        if not sentinel.image:
            sentinel.image = DEFAULT_IMAGE
        if redis.replicas <= 0:
            redis.replicas = DEFAULT_REDIS_NUMBER
        if sentinel.replicas <= 0:
            sentinel.replicas = DEFAULT_SENTINEL_NUMBER
        if not redis.exporter.image:
            redis.exporter.image = DEFAULT_EXPORTER_IMAGE
        if not sentinel.exporter.image:
            sentinel.exporter.image = DEFAULT_SENTINEL_EXPORTER_IMAGE
        if not sentinel.custom_config:
            sentinel.custom_config = list(DEFAULT_SENTINEL_CUSTOM_CONFIG)


@dataclass
class RedisFailoverList:
    resource_version: str = ""
    items: list[RedisFailover] = field(default_factory=list)