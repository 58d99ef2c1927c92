"""API routers."""

from projecthub.api import milestones, projects, realtime, tasks

__all__ = [
    "projects",
    "milestones",
    "tasks",
    "realtime",
]
