# gcptoolbox

Small helpers for applications that run on Google Cloud. The package uses only the standard library.

## Modules

### `gcptoolbox.metadata`

This module reads values about the running environment:

- `project_id()`
- `numeric_project_id()`
- `service_account_email()`, `service_account_name()` and `service_account_id()`
- `region()` and `zone()`
- `instance_id()` and `instance_name()`
- `hostname()`
- `service_account_default_token()`
- `get_instance_attribute(key)` and `get_project_attribute(key)`

`on_gcp()` decides where each value comes from:

- On Google Cloud, values come from the metadata server over HTTP.
- Elsewhere, values come from environment variables:
  - `GOOGLE_CLOUD_PROJECT` or `GCLOUD_PROJECT`
  - `NUMERIC_GOOGLE_CLOUD_PROJECT`
  - `GCLOUD_SERVICE_ACCOUNT`
  - `INSTANCE_REGION` and `INSTANCE_ZONE`
  - `INSTANCE_ID` and `INSTANCE_NAME`
  - `HOSTNAME`
  - `SERVICE_ACCOUNTS_DEFAULT_TOKEN`
  - `INSTANCE_<key>` and `PROJECT_<key>`

How `on_gcp()` decides:

- If `GCE_METADATA_HOST` is set, `on_gcp()` is true and the metadata server is reached at that host.
- Otherwise it probes for the metadata server, and caches the result.

Off Google Cloud, `project_id()` and `numeric_project_id()` raise `NotFoundError` when their variables are unset. Failures talking to the metadata server raise `OSError`.

`extraction_region()` and `extraction_zone()` take a string of the form `projects/<number>/zones/<zone>` and cut the region or the zone out of it.

The module also defines the region names `TOKYO_REGION`, `OSAKA_REGION`, `TAIWAN_REGION` and `IOWA_REGION`.

### `gcptoolbox.appengine_metadata` and `gcptoolbox.cloudrun_metadata`

These modules read the environment variables that each platform sets:

- App Engine sets the `GAE_*` variables. They are read by `service()`, `version()`, `instance()`, `runtime()`, `memory_mb()`, `deployment_id()` and `env()`.
- Cloud Run sets the `K_*` variables. They are read by `service()`, `revision()` and `configuration()`.

A variable that is missing raises `NotFoundError`.

`on_gae()` and `on_cloud_run()` only check that the variables are present. `on_gae_real()` and `on_cloud_run_real()` also require `metadata.on_gcp()`.

### `gcptoolbox.errors`

Defines `MetadataError` and its subclasses `NotFoundError` and `InvalidArgumentError`.

### `gcptoolbox.tasks`

- `tasks.header.get_header(headers)` parses the `X-CloudTasks-*` headers into a `TaskHeader`.
  - Header keys are matched case-insensitively.
  - Missing or malformed values raise `InvalidHeaderError`.
- `tasks.appengine_header.get_appengine_header(headers)` parses the `X-AppEngine-*` task headers into an `AppEngineTaskHeader`.
  - It raises `TaskHeaderNotFoundError` unless `X-Google-Internal-Skipadmincheck` is `true`.
  - It raises `ValueError` on a malformed number or ETA.
- `tasks.appengine_service.TaskService` creates App Engine tasks.
  - It works with `Task`, `GetTask` and `JsonPostTask`, a POST task whose body is serialised as JSON.
  - The `*_multi` methods create tasks concurrently. If any task fails, they raise a `MultiError` that holds one error per failure, each carrying the task's `index`.
  - A name clash raises `AlreadyExistsError`, unless `ignore_already_exists=True` is given.
- `tasks.errors` defines `TaskError` and its subclasses, plus `MultiError`.

### `gcptoolbox.iap` and `gcptoolbox.iap_appengine`

These modules read the signed-in user from request headers:

- `gcptoolbox.iap` reads `X-Goog-Authenticated-User-*`.
- `gcptoolbox.iap_appengine` reads `X-Appengine-User-*`.

`current_user_with_context(headers)` returns the user and stores it in a context variable. `current_user()` returns the stored user later.

### `gcptoolbox.times`

`jst_day_change_time(t)` returns midnight in Japan Standard Time of the calendar date of `t`. `utc_day_change_time(t)` does the same in UTC.

### `gcptoolbox.dataflow`

`ClassicTemplateRunner` launches classic templates and reports on jobs:

- `launch_spanner_to_avro_on_gcs_job()` uses the Cloud_Spanner_to_GCS_Avro template.
- `is_finish_job()` is true once a job is done, failed or cancelled.

`build_spanner_to_avro_parameters(request, now)` returns the template parameters for a given moment.

### `gcptoolbox.metricsscope`

`MetricsScopeService` does the following:

- lists metrics scopes, with `list_metrics_scopes_by_monitored_project()`;
- reads one metrics scope, with `get_metrics_scope()`;
- adds monitored projects, with `create_monitored_project()`;
- removes monitored projects, with `delete_monitored_project()` and `delete_monitored_project_by_monitored_project_name()`.

`MetricsScope` and `MonitoredProject` pull the project parts out of resource names.

### `gcptoolbox.policytroubleshooter`

`PolicyTroubleshooterService` has two methods:

- `has_permission()` tells whether a principal holds a permission on a resource.
- `troubleshoot_iam_policy()` returns a `TroubleshootResult` that holds an `AccessState`.

## Clients

`TaskService`, `ClassicTemplateRunner`, `MetricsScopeService` and `PolicyTroubleshooterService` hold no credentials and open no connections themselves. You pass each one a client object that makes the API calls.

For example, the task client needs a `create_task(request)` method that takes a `CreateTaskRequest` and returns the full task name. To report a name clash, it raises `AlreadyExistsError`, or an error whose `grpc_status_code` is `ALREADY_EXISTS`.

## What it does not do

- It does not verify identity tokens or signed IAP JWT assertions. The user helpers trust the request headers they are given.
- It does not check whether a user is a project admin.
- Task creation covers App Engine targets only. For HTTP target tasks, the package only parses the request headers.
- The package ships no API clients for Cloud Tasks, Dataflow, Monitoring or the policy troubleshooter.

## Examples

```python
from gcptoolbox import metadata

project = metadata.project_id()
region = metadata.extraction_region("projects/123/zones/asia-northeast1-a")  # "asia-northeast1"
```

```python
from gcptoolbox.tasks.header import get_header

header = get_header(request.headers)
print(header.queue_name, header.retry_count, header.eta)
```

```python
from gcptoolbox.tasks.appengine_service import GetTask, Queue, Routing, TaskService

service = TaskService(task_client)
queue = Queue(project_id="my-project", region="asia-northeast1", name="my-queue")
name = service.create_get_task(
    queue,
    GetTask(relative_uri="/tasks/run", routing=Routing(service="worker")),
    ignore_already_exists=True,
)
```

## Running the tests

```
pip install -e ".[test]"
pytest
```