import logging
from typing import Optional

from issue_workflows.domain.fields import FieldMap, primitive, registry, to_bool, to_datetime, to_int, to_str
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.entities.base import GraphQLEntity
from issue_workflows.infrastructure.entities.node import NodeEntity

logger = logging.getLogger(__name__)


@registry.register("Project")
class Project(NodeEntity):
    """A GitHub Project (ProjectV2)."""

    GRAPHQL_TYPE = "ProjectV2"
    FIELDS = FieldMap({
        "closed": primitive(to_bool),
        "closed_at": primitive(to_datetime),
        "created_at": primitive(to_datetime),
        "number": primitive(to_int),
        "public": primitive(to_bool),
        "readme": primitive(to_str),
        "resource_path": primitive(to_str),
        "short_description": primitive(to_str),
        "template": primitive(to_bool),
        "title": primitive(to_str),
        "updated_at": primitive(to_datetime),
        "url": primitive(to_str),
        "viewer_can_close": primitive(to_bool),
        "viewer_can_reopen": primitive(to_bool),
        "viewer_can_update": primitive(to_bool),
    })

    @classmethod
    async def fetch_one(cls, caller: GraphQLEntity) -> Optional["Project"]:
        if caller.TYPE_NAME == "ProjectItem":
            query = GraphQLQuery(
                text=f"""
                query GetProjectByItem($itemId: ID!) {{
                  node(id: $itemId) {{
                    ... on ProjectV2Item {{
                      project {{ {cls.node_selection()} }}
                    }}
                  }}
                }}""",
                variables={"itemId": caller.id},
                path=["node", "project"],
            )
            data = await cls._execute(caller, query)
            if not data:
                logger.debug(f"No Project found for {caller!r}.")
                return None
            return cls.build(data, caller)

        return await super().fetch_one(caller)
