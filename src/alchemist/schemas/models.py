# src/alchemist/schemas/models.py
"""
@brief
Pydantic data models for the Alchemist configurator.

@details
Defines the canonical model types:
    - Client, Worker, Task: uploaded entity records
    - ValidationIssue, ValidationSummary: validation engine output
    - PriorityWeight, PriorityProfile: prioritization weights
    - ExportDocument: the consolidated document for the allocation engine
    - Config: runtime configuration (from config.yaml)

Entity models use snake_case attributes with the canonical upload/export
column names as aliases. They carry no range or required-ness validators:
those are data-quality findings reported by the validator, not exceptions.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator

from alchemist.schemas.base import _StrictBaseModel
from alchemist.schemas.rules import Rule

EntityType = Literal["client", "worker", "task"]
Severity = Literal["error", "warning"]


# ------------------------------------------------------------
# Entities
# ------------------------------------------------------------
class Client(_StrictBaseModel):
    """
    @brief
    Represents one client record.

    @params
        client_id : str
            Unique identifier (empty when missing upstream).
        priority_level : int
            Expected in [1, 5].
        requested_task_ids : list[str]
            Ordered references to Task.task_id.
        attributes_json : str
            Free-form attributes, expected to parse as JSON.
    """

    client_id: str = Field("", alias="ClientID", description="Unique identifier")
    client_name: str = Field("", alias="ClientName", description="Display name")
    priority_level: int = Field(0, alias="PriorityLevel", description="Priority in [1, 5]")
    requested_task_ids: list[str] = Field(
        default_factory=list, alias="RequestedTaskIDs", description="Requested task IDs"
    )
    group_tag: str = Field("", alias="GroupTag", description="Grouping key")
    attributes_json: str = Field("{}", alias="AttributesJSON", description="JSON attributes")


class Worker(_StrictBaseModel):
    """
    @brief
    Represents one worker record.

    @details
    ``available_slots`` is typed loosely so that non-numeric phase values
    survive loading and are reported by the validator.
    """

    worker_id: str = Field("", alias="WorkerID", description="Unique identifier")
    worker_name: str = Field("", alias="WorkerName", description="Display name")
    skills: list[str] = Field(default_factory=list, alias="Skills", description="Skill names")
    available_slots: list[Any] = Field(
        default_factory=list, alias="AvailableSlots", description="Available phase numbers"
    )
    max_load_per_phase: int = Field(
        0, alias="MaxLoadPerPhase", description="Max tasks assignable per phase"
    )
    worker_group: str = Field("", alias="WorkerGroup", description="Grouping key")
    qualification_level: str = Field("", alias="QualificationLevel")


class Task(_StrictBaseModel):
    """
    @brief
    Represents one task record.

    @details
    ``preferred_phases`` is normally an explicit list of phase numbers.
    A raw string means upstream normalization did not happen and is
    reported by the validator.
    """

    task_id: str = Field("", alias="TaskID", description="Unique identifier")
    task_name: str = Field("", alias="TaskName", description="Display name")
    category: str = Field("", alias="Category")
    duration: int = Field(0, alias="Duration", description="Phases required (>= 1)")
    required_skills: list[str] = Field(
        default_factory=list, alias="RequiredSkills", description="Required skill names"
    )
    preferred_phases: list[Any] | str = Field(
        default_factory=list, alias="PreferredPhases", description="Preferred phase numbers"
    )
    max_concurrent: int = Field(
        0, alias="MaxConcurrent", description="Max simultaneous assignments (>= 1)"
    )


# ------------------------------------------------------------
# Validation output
# ------------------------------------------------------------
class ValidationIssue(_StrictBaseModel):
    """
    @brief
    One data-quality finding produced by the validator.

    @details
    Immutable. ``check`` names the producing check and ``context`` carries
    structured values (missing skill, unresolved task id, counts) so that
    correction heuristics never need to parse ``message``.
    """

    model_config = {"frozen": True}

    entity_type: EntityType = Field(..., alias="entityType")
    entity_id: str = Field(..., alias="entityId")
    field: str
    message: str
    severity: Severity
    check: str = ""
    context: dict[str, Any] = Field(default_factory=dict)


class ValidationSummary(_StrictBaseModel):
    """
    @brief
    Result of one validation run.

    @details
    ``valid`` is True iff ``errors`` is empty; warnings never affect it.
    Recomputed wholesale on every run.
    """

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


# ------------------------------------------------------------
# Prioritization
# ------------------------------------------------------------
class PriorityWeight(_StrictBaseModel):
    name: str = Field(..., min_length=1, description="Unique key")
    description: str = ""
    weight: int = Field(..., ge=1, le=5)


class PriorityProfile(_StrictBaseModel):
    """Named, fixed set of priority weights."""

    name: str = Field(..., min_length=1)
    description: str = ""
    weights: list[PriorityWeight] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_weight_names(self) -> PriorityProfile:
        names = [w.name for w in self.weights]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate weight names in profile {self.name!r}")
        return self


# ------------------------------------------------------------
# Export document
# ------------------------------------------------------------
class ExportDocument(_StrictBaseModel):
    """
    @brief
    Consolidated configuration consumed by the downstream allocation engine.

    @details
    Exactly five top-level keys; collections are serialized per their
    field contracts with no additional transformation.
    """

    clients: list[Client] = Field(default_factory=list)
    workers: list[Worker] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    rules: list[Rule] = Field(default_factory=list)
    prioritization: list[PriorityWeight] = Field(default_factory=list)


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class ValidationConfig(_StrictBaseModel):
    """
    @brief
    Controls behavior of the validation step in the pipeline.

    @details
    ``fail_on_warnings`` affects only the CLI exit code; it never changes
    ``ValidationSummary.valid``.
    """

    write_report: bool = True
    fail_on_warnings: bool = False
    suggest_corrections: bool = True


class ExportConfig(_StrictBaseModel):
    filename: str = Field("allocation_config.json", min_length=1)
    allow_invalid: bool = Field(
        True, description="Write the export even when validation reports errors"
    )


class MetricsConfig(_StrictBaseModel):
    save_metrics: bool = True


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.
    """

    clients_file: str | None = None
    workers_file: str | None = None
    tasks_file: str | None = None
    rules_file: str | None = None
    output_dir: str = "data/output"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    priority_profile: str | None = Field(
        None, description="Name of a predefined profile; default weights when omitted"
    )
    validation: ValidationConfig = Field(default_factory=ValidationConfig.model_construct)
    export: ExportConfig = Field(default_factory=ExportConfig.model_construct)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig.model_construct)


__all__ = [
    "Client",
    "Config",
    "EntityType",
    "ExportConfig",
    "ExportDocument",
    "MetricsConfig",
    "PriorityProfile",
    "PriorityWeight",
    "Severity",
    "Task",
    "ValidationConfig",
    "ValidationIssue",
    "ValidationSummary",
    "Worker",
]
