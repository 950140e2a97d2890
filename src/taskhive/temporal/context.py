"""
Project context contract for Temporal workflows and activities.

Workflows build the context once and pass it to every project-scoped
activity, so an activity can never be handed a namespace that belongs to a
different project.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProjectCtx:
    """
    Standardized project context for project-scoped activities.

    Attributes:
        project_id: Registry id of the project
        namespace: Database namespace (unset until provisioning registered it)
    """

    project_id: str
    namespace: str | None = None
