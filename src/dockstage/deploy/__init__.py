"""dockstage image workflow.

This package stages a build context from resource rules and drives the
container image build, tag, push and removal steps against an engine.
"""

from dockstage.deploy.builder import ImageBuilder, resolve_tags
from dockstage.deploy.context import (
    StagingPlanEntry,
    plan_context,
    stage_context,
    with_primary_resource,
)
from dockstage.deploy.engine import BuildEvent, EngineClient, PushEvent
from dockstage.deploy.matcher import match_files, matches_pattern
from dockstage.deploy.workflow import WorkflowResult, run_workflow

__all__ = [
    "BuildEvent",
    "EngineClient",
    "ImageBuilder",
    "PushEvent",
    "StagingPlanEntry",
    "WorkflowResult",
    "match_files",
    "matches_pattern",
    "plan_context",
    "resolve_tags",
    "run_workflow",
    "stage_context",
    "with_primary_resource",
]
