# daprctl

`daprctl` is a library for working with a Dapr installation. It reports the
state of the control plane running in a Kubernetes cluster, lists
Dapr-enabled applications and their sidecar logs, prints components and
configurations, builds Helm chart values for install, upgrade and certificate
renewal, reads and writes sidecar metadata, and checks the root certificate of
the cluster's trust chain.

The functions that look at a cluster take a client object that you supply.
The pod queries need only `list_pods(namespace, label_selector)`, as described
by the `daprctl.pods.KubeClient` protocol; `daprctl.pods.InMemoryCluster` is a
ready-made implementation that holds pods in memory.

## Modules

- **`daprctl.console`**: status lines for success, failure, warning, pending
  and info events (`success_status_event`, `failure_status_event`,
  `warning_status_event`, `pending_status_event`, `info_status_event`,
  `status_event` with a `LogStatus`). Messages take `%s`/`%d`/`%v`-style
  placeholders. `enable_json_format()` switches all of them to one JSON object
  per line with `time`, `status` and `msg`. `spinner()` shows a spinner when
  the stream is a terminal and returns a function that, called once with a
  `Result`, stops it and reports success or failure.
- **`daprctl.pods`**: the `Pod`, `Container`, `ContainerStatus` and
  `ContainerState` models, the `KubeClient` protocol, `InMemoryCluster`
  (which understands `key=value`, `key!=value`, `key` and `!key` selectors),
  `format_labels`, `list_pods`, `list_pods_interface` (all namespaces) and
  `check_pod_exists`.
- **`daprctl.status`**: `StatusClient(client).status()` returns a
  `StatusOutput` for each control-plane service that has pods (operator,
  sentry, placement, placement server, sidecar injector, dashboard) with its
  namespace, health, status, replica count, image-tag version, age and
  creation time. It raises `RuntimeError` when no client was given.
  `get_dapr_resources_status` raises if nothing is installed;
  `get_dapr_version` and `get_dapr_namespace` derive the installed version and
  namespace.
- **`daprctl.apps`**: `list_apps` returns a `ListOutput` for every pod with a
  `daprd` sidecar, with its app ID and port; `find_app_pod` finds the pod of
  an app ID; `logs` writes the sidecar logs of an app or a named pod to a
  stream. `logs` needs a client that also has
  `pod_logs(namespace, pod_name, container)` returning text chunks.
- **`daprctl.output`**: `get_age` (short ages such as `0s`, `20m`, `3d`),
  `format_timestamp`, `write_table` for space-aligned tables, and
  `print_detail` for indented JSON or YAML.
- **`daprctl.resources`**: the `Component` and `Configuration` models;
  `write_components` and `write_configurations` render what a fetch function
  returns as a table (format `""` or `"list"`) or as `json`/`yaml` detail,
  leaving out the `daprsystem` entry and optionally filtering by name
  (case-insensitive). `print_components` and `print_configurations` do the
  same to standard output from a client with `list_components(namespace)` and
  `list_configurations(namespace)`; a `LookupError` from the client is treated
  as an empty list. `tracing_enabled` tells whether a sampling rate is
  positive.
- **`daprctl.values`**: `parse_into` merges `a.b.c=value`, `list[0]=value`
  and `key={a,b}` expressions into nested values; `chart_values`,
  `upgrade_chart_values` and `create_helm_params_for_new_certificates` build
  the values for install, upgrade and certificate renewal from
  `InitConfiguration` and `UpgradeConfig`. Also `chart_version`,
  `parse_certificate_files`, `high_availability_enabled` and `is_downgrade`.
- **`daprctl.mtls`**: `default_configuration()`, `is_mtls_enabled`,
  `export_trust_chain` (writes `ca.crt`, `issuer.crt` and `issuer.key` with
  mode 0600), `certificate_expiry`, and `check_for_cert_expiry`, which warns
  when the root certificate has fewer than 30 days left and stays silent on
  errors. These need a client with `list_configurations(namespace)` and
  `list_secrets(namespace)`; secrets have a `name` and a `data` mapping of
  bytes.
- **`daprctl.metadata`**: `get` and `put` against a sidecar's metadata
  endpoint over TCP or a Unix domain socket; `put` retries on connection
  errors and on 429 and 5xx responses. `make_metadata_get_endpoint` and
  `make_metadata_put_endpoint` build the URLs.
- **`daprctl.rundata`**: `delete_run_data_file()` removes the old
  `dapr-run-data.ldj` file from the temp directory while holding its lock.

## Examples

Helm chart values:

```python
from daprctl.values import parse_into, chart_version, is_downgrade

values = {}
parse_into("global.ha.enabled=true", values)
parse_into("global.tag=1.10.0", values)
# values == {"global": {"ha": {"enabled": True}, "tag": "1.10.0"}}

chart_version("0.7.0")            # "0.4.0"
chart_version("1.10.0")           # "1.10.0"
is_downgrade("1.3.0", "1.4.0")    # True
```

Control-plane status from pods held in memory:

```python
from daprctl.pods import Container, ContainerState, ContainerStatus, InMemoryCluster, Pod
from daprctl.status import StatusClient

cluster = InMemoryCluster(
    Pod(
        name="dapr-sentry-0",
        namespace="dapr-system",
        labels={"app": "dapr-sentry"},
        containers=[Container(image="daprio/dapr:1.10.0")],
        container_statuses=[ContainerStatus(state=ContainerState(running=True), ready=True)],
    )
)
for entry in StatusClient(cluster).status():
    print(entry.name, entry.status, entry.healthy, entry.version)
# dapr-sentry Running True 1.10.0
```

Sidecar metadata endpoints:

```python
from daprctl.metadata import make_metadata_get_endpoint, make_metadata_put_endpoint

make_metadata_get_endpoint(3500)            # "http://127.0.0.1:3500/v1.0/metadata"
make_metadata_put_endpoint(3500, "mykey")   # "http://127.0.0.1:3500/v1.0/metadata/mykey"
```

Status messages:

```python
import sys
from daprctl.console import Result, info_status_event, spinner

info_status_event(sys.stdout, "Dapr control plane version %s detected", "1.10.0")

stop = spinner(sys.stdout, "Deploying the Dapr control plane to your cluster...")
stop(Result.SUCCESS)
```

## What it does not do

- There is no command-line program; everything is called from Python.
- It does not connect to a Kubernetes API server on its own: cluster access
  comes from the client object you pass in.
- It does not run Helm. It builds the chart values an install, upgrade or
  certificate renewal would use, but does not pull charts, install, upgrade
  or uninstall releases, or apply CRDs.
- It does not generate certificates; it reads existing ones and checks the
  root certificate's expiry.
- It does not start or stop Dapr sidecars or applications.

## Requirements

Python 3.10 or later, with `pyyaml`, `filelock`, `packaging` and
`cryptography`. The tests use `pytest`, available through the `test` extra.