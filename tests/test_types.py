import pytest

from rfoperator.types import (
    BootstrapSettings,
    GroupVersionKind,
    ObjectMeta,
    RedisExporter,
    RedisFailover,
    RedisFailoverSpec,
    RedisSettings,
    SentinelExporter,
    SentinelSettings,
    ValidationError,
    kind,
    resource,
    version_kind,
)


def generate_redis_failover(name, bootstrap_node=None):
    return RedisFailover(
        metadata=ObjectMeta(name=name, namespace="namespace"),
        spec=RedisFailoverSpec(bootstrap_node=bootstrap_node),
    )


@pytest.mark.parametrize(
    "settings, expected",
    [
        (None, False),
        (BootstrapSettings(host="127.0.0.1", port="6379"), True),
    ],
)
def test_bootstrapping(settings, expected):
    rf = generate_redis_failover("test", settings)
    assert rf.bootstrapping() is expected


@pytest.mark.parametrize(
    "settings, expected",
    [
        (None, True),
        (BootstrapSettings(host="127.0.0.1", port="6379"), False),
        (BootstrapSettings(host="127.0.0.1", port="6379", allow_sentinels=True), True),
    ],
)
def test_sentinels_allowed(settings, expected):
    rf = generate_redis_failover("test", settings)
    assert rf.sentinels_allowed() is expected


VALIDATE_CASES = [
    ("populates default values", "test", None, [], [], "", None),
    (
        "errors on too long of name",
        "some-super-absurdely-unnecessarily-long-name-that-will-most-definitely-fail",
        None, [], [], "name length can't be higher than 48", None,
    ),
    ("SentinelCustomConfig provided", "test", None, [], ["failover-timeout 500"], "", None),
    (
        "BootstrapNode provided without a host",
        "test", BootstrapSettings(), [], [],
        "BootstrapNode must include a host when provided", None,
    ),
    ("SentinelCustomConfig not provided", "test", None, [], [], "", None),
    (
        "Populates default bootstrap port when valid",
        "test", BootstrapSettings(host="127.0.0.1"), [], [], "",
        BootstrapSettings(host="127.0.0.1", port="6379"),
    ),
    (
        "Allows for specifying boostrap port",
        "test", BootstrapSettings(host="127.0.0.1", port="6380"), [], [], "",
        BootstrapSettings(host="127.0.0.1", port="6380"),
    ),
    (
        "Appends applied custom config to default initial values",
        "test", None, ["tcp-keepalive 60"], [], "", None,
    ),
    (
        "Appends applied custom config to default initial values when bootstrapping",
        "test", BootstrapSettings(host="127.0.0.1"), ["tcp-keepalive 60"], [], "",
        BootstrapSettings(host="127.0.0.1", port="6379"),
    ),
]


@pytest.mark.parametrize(
    "case_name, rf_name, bootstrap, redis_config, sentinel_config, expected_error, expected_bootstrap",
    VALIDATE_CASES,
    ids=[c[0] for c in VALIDATE_CASES],
)
def test_validate(case_name, rf_name, bootstrap, redis_config, sentinel_config,
                  expected_error, expected_bootstrap):
    bootstrap_copy = None if bootstrap is None else BootstrapSettings(
        host=bootstrap.host, port=bootstrap.port
    )
    rf = generate_redis_failover(rf_name, bootstrap_copy)
    rf.spec.redis.custom_config = list(redis_config)
    rf.spec.sentinel.custom_config = list(sentinel_config)

    if expected_error:
        with pytest.raises(ValidationError) as excinfo:
            rf.validate()
        assert str(excinfo.value) == expected_error
        return

    rf.validate()

    initial = ["replica-priority 0"] if bootstrap is not None else ["replica-priority 100"]
    expected_redis_config = initial + list(redis_config)
    expected_sentinel_config = (
        list(sentinel_config)
        if sentinel_config
        else ["down-after-milliseconds 5000", "failover-timeout 10000"]
    )

    expected = RedisFailover(
        metadata=ObjectMeta(name=rf_name, namespace="namespace"),
        spec=RedisFailoverSpec(
            redis=RedisSettings(
                image="redis:6.2.6-alpine",
                replicas=3,
                exporter=RedisExporter(
                    image="quay.io/oliver006/redis_exporter:v1.33.0-alpine"
                ),
                custom_config=expected_redis_config,
            ),
            sentinel=SentinelSettings(
                image="redis:6.2.6-alpine",
                replicas=3,
                custom_config=expected_sentinel_config,
                exporter=SentinelExporter(
                    image="quay.io/oliver006/redis_exporter:v1.33.0-alpine"
                ),
            ),
            bootstrap_node=expected_bootstrap,
        ),
    )
    assert rf == expected


def test_validate_keeps_given_values():
    rf = generate_redis_failover("test")
    rf.spec.redis.image = "custom:1"
    rf.spec.redis.replicas = 5
    rf.spec.sentinel.replicas = 7
    rf.spec.redis.exporter.image = "exporter:2"
    rf.validate()
    assert rf.spec.redis.image == "custom:1"
    assert rf.spec.redis.replicas == 5
    assert rf.spec.sentinel.replicas == 7
    assert rf.spec.redis.exporter.image == "exporter:2"
    assert rf.spec.sentinel.image == "redis:6.2.6-alpine"


def test_validate_negative_replicas_get_defaults():
    rf = generate_redis_failover("test")
    rf.spec.redis.replicas = -1
    rf.spec.sentinel.replicas = 0
    rf.validate()
    assert (rf.spec.redis.replicas, rf.spec.sentinel.replicas) == (3, 3)


def test_validate_does_not_share_default_lists():
    first = generate_redis_failover("one")
    second = generate_redis_failover("two")
    first.validate()
    first.spec.redis.custom_config.append("maxmemory 1mb")
    first.spec.sentinel.custom_config.append("extra 1")
    second.validate()
    assert second.spec.redis.custom_config == ["replica-priority 100"]
    assert second.spec.sentinel.custom_config == [
        "down-after-milliseconds 5000",
        "failover-timeout 10000",
    ]


def test_name_of_exactly_max_length_is_valid():
    rf = generate_redis_failover("a" * 48)
    rf.validate()
    assert rf.spec.redis.replicas == 3


def test_version_kind():
    gvk = version_kind("RedisFailover")
    assert gvk == GroupVersionKind("databases.spotahome.com", "v1", "RedisFailover")
    assert gvk.api_version == "databases.spotahome.com/v1"


def test_kind_and_resource():
    assert kind("RedisFailover") == ("databases.spotahome.com", "RedisFailover")
    assert resource("redisfailovers") == ("databases.spotahome.com", "redisfailovers")


def test_name_namespace_labels_properties():
    rf = RedisFailover(metadata=ObjectMeta(name="n", namespace="ns", labels={"a": "b"}))
    assert (rf.name, rf.namespace, rf.labels) == ("n", "ns", {"a": "b"})