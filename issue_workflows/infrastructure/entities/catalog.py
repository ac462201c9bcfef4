"""
Loads every entity type and binds their cross-references.

Import entity classes from here rather than from their own modules so relations between types
always resolve.
"""
from issue_workflows.domain.fields import registry
from issue_workflows.infrastructure.entities.base import UNKNOWN, GraphQLEntity
from issue_workflows.infrastructure.entities.field_value import ProjectItemFieldValue
from issue_workflows.infrastructure.entities.issue import Issue
from issue_workflows.infrastructure.entities.label import Label
from issue_workflows.infrastructure.entities.project import Project
from issue_workflows.infrastructure.entities.project_item import ProjectItem

registry.bind()

__all__ = [
    "UNKNOWN",
    "GraphQLEntity",
    "Issue",
    "Label",
    "Project",
    "ProjectItem",
    "ProjectItemFieldValue",
    "registry",
]
