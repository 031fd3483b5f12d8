# rfoperator

`rfoperator` holds the decision-making core of an operator for Redis failover
clusters. Such a cluster is a group of Redis instances, one master with
replicas, watched by a group of Sentinels.

The package does not talk to a cluster or to Redis itself. You pass in
objects that do that work. The package decides which resources must exist,
which checks to run and which healing steps to take.

## Modules

### `rfoperator.types`

This module is the resource model. A `RedisFailover` has `metadata`
(`ObjectMeta`) and a `spec` (`RedisFailoverSpec`). The spec holds:

- `redis` settings (`RedisSettings`);
- `sentinel` settings (`SentinelSettings`);
- `auth` settings (`AuthSettings`);
- a `label_whitelist`;
- an optional `bootstrap_node` (`BootstrapSettings`).

The methods on `RedisFailover` are:

- `validate()` fills in defaults in place:
  - the Redis and Sentinel images (`redis:6.2.6-alpine`);
  - 3 replicas of each when the count is zero or negative;
  - the exporter images;
  - the Sentinel custom configuration when it is empty;
  - a bootstrap port of `6379` when none is given.

  It also puts `replica-priority 100` in front of the Redis custom
  configuration, or `replica-priority 0` when bootstrapping. It raises
  `ValidationError` in two cases: the name is longer than 48 characters, or
  a bootstrap node has no host.
- `bootstrapping()` tells whether a bootstrap node is set.
- `sentinels_allowed()` is true unless the failover is bootstrapping and the
  bootstrap node does not set `allow_sentinels`.

Three functions qualify names with the `databases.spotahome.com` group and
the `v1` version:

- `version_kind(kind)` returns a `GroupVersionKind`;
- `kind(kind)` returns a `(group, kind)` pair;
- `resource(resource)` returns a `(group, resource)` pair.

### `rfoperator.log`

`Logger` wraps the standard `logging` module.

- It carries structured fields. `with_field` and `with_fields` return new
  loggers that share the same level.
- Each record is written with its fields and a `src=file:line` field.
- `set_level(name)` accepts these names: `panic`, `fatal`, `error`, `warn`,
  `warning`, `info`, `debug` and `trace`. For any other name it raises
  `ValueError`.
- `fatal` logs the message and raises `SystemExit(1)`.
- `panic` logs the message and raises `LoggerPanic`.

`DummyLogger` writes nothing, never exits and never raises. It only counts
the messages it discards, in `discarded`.

The module-level `base()`, `with_field()` and `set_level()` work on a shared
base logger.

### `rfoperator.metrics`

- `GaugeVec` is a gauge keyed by label values.
- `Registry` holds gauges. `expose()` renders them in the Prometheus text
  exposition format. Registering the same name twice raises `ValueError`.
- `Recorder(namespace, registry)` registers a
  `<namespace>_controller_cluster_ok` gauge with the labels `namespace` and
  `name`. Its methods are:
  - `set_cluster_ok` sets the gauge to `1`;
  - `set_cluster_error` sets it to `0`;
  - `delete_cluster` removes the series.

  For example, the registry then exposes:
  `my_metrics_controller_cluster_ok{name="test",namespace="testns"} 1`.
- `DummyRecorder` keeps statuses in an in-memory dict and exposes nothing.

### `rfoperator.config`

- `Config` holds `listen_address` and `metrics_path`.
- `parse_flags(argv)` reads a `CMDFlags`. With no arguments it reads
  `sys.argv`. The flags can be written with one dash or two:

  | Flag | Default |
  | --- | --- |
  | `--kubeconfig` | `~/.kube/config` |
  | `--development` | off |
  | `--debug` | off |
  | `--listen-address` | `:9710` |
  | `--metrics-path` | `/metrics` |

  The boolean flags take an optional value such as `true` or `false`.
  Invalid input makes it exit with status 2.
- `CMDFlags.to_operator_config()` returns a `Config`.

### `rfoperator.handler`

`RedisFailoverHandler(config, rf_service, rf_checker, rf_healer,
k8s_service=None, metrics_client=None, logger=None)` is the handler. When
no metrics client or logger is given, it uses a `DummyRecorder` and a
`DummyLogger`.

- `handle(obj)` does the whole round:
  1. it validates the failover;
  2. it builds the labels and owner references;
  3. it ensures the resources;
  4. it checks and heals.

  Then it records the cluster as OK or in error and re-raises any error.
  For an object that is not a `RedisFailover` it raises `HandlerError`.
- `ensure(rf, labels, owner_refs)` calls the `ensure_*` methods of
  `rf_service` for every service, config map, statefulset and deployment.
  The Sentinel resources are skipped when Sentinels are not allowed.
- `check_and_heal(rf)` checks the failover and repairs what it can:
  - it checks the Redis and Sentinel counts;
  - it makes sure there is a single master, promoting one when there is
    none;
  - it checks that the replicas follow the master;
  - it applies the custom configuration;
  - it checks the Sentinel monitors and the Sentinels' memory.

  It raises `HandlerError` when there is more than one master. In bootstrap
  mode the external bootstrap node is made the master of all nodes.
- `update_redises_pods(rf)` deletes at most one pod per call whose revision
  differs from the statefulset's update revision. Replicas come before the
  master. It does nothing while a replica is not ready.
- `get_labels(rf)` merges three sets of labels:
  - `app.kubernetes.io/managed-by: redis-operator`;
  - the failover's name label;
  - its own labels, filtered by the whitelist patterns. An invalid pattern
    is logged and ignored.
- `create_owner_references(rf)` returns one controlling `OwnerReference`.

The collaborators are plain objects that the handler calls by method name.

- `rf_checker` has the `get_*` and `check_*` methods, for example
  `get_redises_ips`, `get_master_ip`, `get_number_masters` and
  `check_sentinel_monitor`. A failed `check_*` raises.
  `get_minimum_redis_pod_time` returns a `timedelta`, and a time over two
  minutes with no master triggers `set_oldest_as_master`.
- `rf_healer` has the repair methods, for example `make_master`,
  `set_master_on_all`, `set_external_master_on_all`, `new_sentinel_monitor`,
  `restore_sentinel` and `delete_pod`.

## Example

```python
from rfoperator.config import parse_flags

flags = parse_flags(["--debug", "--listen-address", ":9000"])
config = flags.to_operator_config()
```

## What this package does not do

- It has no command and no long-running process.
- It does not connect to Kubernetes or Redis. The resource client, the
  checker and the healer must be supplied.
- It does not watch for `RedisFailover` objects.
- It does not serve the metrics over HTTP. `Registry.expose()` only returns
  the text.

## Tests

The tests use pytest, which is declared in the `test` extra.