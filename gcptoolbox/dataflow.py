"""Launching classic Dataflow templates and watching their jobs."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from gcptoolbox.times import JST, jst_day_change_time

_JOB_NAME_PREFIX = "gcpbox-spanner-export-to-avro-on-gcs"
_SNAPSHOT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class JobState(enum.IntEnum):
    """States of a Dataflow job."""

    JOB_STATE_UNKNOWN = 0
    JOB_STATE_STOPPED = 1
    JOB_STATE_RUNNING = 2
    JOB_STATE_DONE = 3
    JOB_STATE_FAILED = 4
    JOB_STATE_CANCELLED = 5
    JOB_STATE_UPDATED = 6
    JOB_STATE_DRAINING = 7
    JOB_STATE_DRAINED = 8
    JOB_STATE_PENDING = 9
    JOB_STATE_CANCELLING = 10
    JOB_STATE_QUEUED = 11
    JOB_STATE_RESOURCE_CLEANING_UP = 12


_FINISHED_STATES = frozenset(
    {JobState.JOB_STATE_DONE, JobState.JOB_STATE_FAILED, JobState.JOB_STATE_CANCELLED}
)


@dataclass
class ClassicLaunchTemplateJobRequest:
    """What to launch: project, location, job name, template and parameters."""

    project_id: str
    location: str
    job_name: str
    template_gcs_path: str
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass
class ClassicLaunchTemplateRuntimeEnvironment:
    """Runtime environment of the launched job's workers."""

    num_workers: int = 0
    max_workers: int = 0
    zone: str = ""
    service_account_email: str = ""
    temp_location: str = ""
    bypass_temp_dir_validation: bool = False
    machine_type: str = ""
    additional_experiments: list[str] = field(default_factory=list)
    network: str = ""
    subnetwork: str = ""
    additional_user_labels: dict[str, str] = field(default_factory=dict)
    kms_key_name: str = ""
    worker_region: str = ""
    worker_zone: str = ""
    enable_streaming_engine: bool = False


@dataclass(frozen=True)
class LaunchTemplateRequest:
    """A request sent to the templates client."""

    project_id: str
    location: str
    gcs_path: str
    job_name: str
    parameters: Mapping[str, str]
    environment: ClassicLaunchTemplateRuntimeEnvironment
    validate_only: bool = False
    update: bool = False


@dataclass
class SpannerToAvroOnGCSJobRequest:
    """Options of a Spanner export to Avro files on Cloud Storage.

    Without ``job_name`` one is made from the current JST time. With
    ``output_dir_add_current_date_jst`` '/YYYY/MM/DD' of today in JST is
    appended to ``output_dir``. ``snapshot_time`` takes precedence over
    ``snapshot_time_jst_day_change_time``.
    """

    project_id: str = ""
    location: str = ""
    job_name: str = ""
    output_dir: str = ""
    output_dir_add_current_date_jst: bool = False
    avro_temp_directory: str = ""
    snapshot_time: datetime | None = None
    snapshot_time_jst_day_change_time: bool = False
    spanner_project_id: str = ""
    spanner_instance_id: str = ""
    spanner_database_id: str = ""
    should_export_timestamp_as_logical_type: bool = False
    table_names: list[str] = field(default_factory=list)
    should_export_related_tables: bool = False
    spanner_priority: str = ""
    data_boost_enabled: bool = False
    template_gcs_path: str = ""


class TemplatesClient(Protocol):
    def launch_template(self, request: LaunchTemplateRequest) -> Any: ...


class JobsClient(Protocol):
    def get_job(self, *, project_id: str, job_id: str, location: str) -> Any: ...


def build_spanner_to_avro_parameters(
    request: SpannerToAvroOnGCSJobRequest, now: datetime
) -> dict[str, str]:
    """Return the template parameters of a Spanner to Avro export at ``now``."""
    jst_day = jst_day_change_time(now.astimezone(JST))
    parameters: dict[str, str] = {}
    if request.output_dir:
        if request.output_dir_add_current_date_jst:
            parameters["outputDir"] = f"{request.output_dir}/{jst_day:%Y/%m/%d}"
        else:
            parameters["outputDir"] = request.output_dir
    if request.avro_temp_directory:
        parameters["avroTempDirectory"] = request.avro_temp_directory
    if request.snapshot_time_jst_day_change_time:
        parameters["snapshotTime"] = jst_day.astimezone(timezone.utc).strftime(
            _SNAPSHOT_FORMAT
        )
    if request.snapshot_time is not None:
        parameters["snapshotTime"] = request.snapshot_time.strftime(_SNAPSHOT_FORMAT)
    if request.spanner_project_id:
        parameters["spannerProjectId"] = request.spanner_project_id
    parameters["instanceId"] = request.spanner_instance_id
    parameters["databaseId"] = request.spanner_database_id
    if request.should_export_timestamp_as_logical_type:
        parameters["shouldExportTimestampAsLogicalType"] = "true"
    if request.table_names:
        parameters["tableNames"] = ",".join(request.table_names)
    if request.should_export_related_tables:
        parameters["shouldExportRelatedTables"] = "true"
    if request.spanner_priority:
        parameters["spannerPriority"] = request.spanner_priority
    if request.data_boost_enabled:
        parameters["dataBoostEnabled"] = "true"
    return parameters


def _to_job_state(value: Any) -> JobState:
    if isinstance(value, str):
        return JobState[value]
    return JobState(int(value))


class ClassicTemplateRunner:
    """Launches classic templates and reports on their jobs."""

    def __init__(self, templates_client: TemplatesClient, jobs_client: JobsClient) -> None:
        self._templates = templates_client
        self._jobs = jobs_client

    def launch_template_job(
        self,
        request: ClassicLaunchTemplateJobRequest,
        runtime: ClassicLaunchTemplateRuntimeEnvironment,
    ) -> Any:
        """Launch a classic template job and return the client's response."""
        return self._templates.launch_template(
            LaunchTemplateRequest(
                project_id=request.project_id,
                location=request.location,
                gcs_path=request.template_gcs_path,
                job_name=request.job_name,
                parameters=dict(request.parameters),
                environment=runtime,
            )
        )

    def launch_spanner_to_avro_on_gcs_job(
        self,
        request: SpannerToAvroOnGCSJobRequest,
        runtime: ClassicLaunchTemplateRuntimeEnvironment,
    ) -> Any:
        """Launch the Cloud_Spanner_to_GCS_Avro template of the request's location."""
        jst_now = datetime.now(JST)
        job_name = request.job_name or f"{_JOB_NAME_PREFIX}-{jst_now:%Y%m%d-%H%M%S}"
        parameters = build_spanner_to_avro_parameters(request, jst_now)
        return self.launch_template_job(
            ClassicLaunchTemplateJobRequest(
                project_id=request.project_id,
                location=request.location,
                job_name=job_name,
                template_gcs_path=(
                    f"gs://dataflow-templates-{request.location}"
                    "/latest/Cloud_Spanner_to_GCS_Avro"
                ),
                parameters=parameters,
            ),
            runtime,
        )

    def get_job(self, project_id: str, location: str, job_id: str) -> Any:
        """Return the job from the jobs client."""
        return self._jobs.get_job(project_id=project_id, job_id=job_id, location=location)

    def is_finish_job(self, project_id: str, location: str, job_id: str) -> bool:
        """Return whether the job has ended: done, failed or cancelled."""
        job = self.get_job(project_id, location, job_id)
        return _to_job_state(job.current_state) in _FINISHED_STATES