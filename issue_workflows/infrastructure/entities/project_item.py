import logging
from typing import List, Optional

from issue_workflows.domain.fields import (
    FieldMap,
    collection,
    primitive,
    registry,
    singular,
    to_bool,
    to_datetime,
    to_int,
    to_str,
)
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.entities.base import GraphQLEntity
from issue_workflows.infrastructure.entities.node import NodeEntity

logger = logging.getLogger(__name__)


@registry.register("ProjectItem")
class ProjectItem(NodeEntity):
    """An item (card) of a GitHub Project, such as an Issue placed on a board."""

    GRAPHQL_TYPE = "ProjectV2Item"
    PAGE_SIZE = 2
    FIELDS = FieldMap({
        "created_at": primitive(to_datetime),
        "database_id": primitive(to_int),
        "is_archived": primitive(to_bool),
        "type": primitive(to_str),
        "updated_at": primitive(to_datetime),
        "project": singular("Project"),
        "field_values": collection("ProjectItemFieldValue"),
    })

    async def field_value(self, field_name: str) -> Optional[GraphQLEntity]:
        """Returns the value this item holds for the Project field named `field_name`."""
        for value in await self.get("field_values"):
            if await value.get("field_name") == field_name:
                return value

        logger.debug(f"{self!r} has no value for field `{field_name}`.")
        return None

    @classmethod
    async def fetch_many(cls, caller: GraphQLEntity, page_size: int = None) -> List["ProjectItem"]:
        page_size = page_size or cls.PAGE_SIZE

        # Archived Project items are not returned
        if caller.TYPE_NAME == "Issue":
            query = GraphQLQuery(
                text=f"""
                query GetProjectItemsByIssue($owner: String!, $repo: String!, $issueNumber: Int!, $pageSize: Int!) {{
                  repository(owner: $owner, name: $repo) {{
                    issue(number: $issueNumber) {{
                      projectItems(first: $pageSize, includeArchived: false) {{
                        totalCount
                        nodes {{ {cls.node_selection()} }}
                      }}
                    }}
                  }}
                }}""",
                variables={
                    "owner": caller.owner,
                    "repo": caller.repository,
                    "issueNumber": caller.number,
                    "pageSize": page_size,
                },
                path=["repository", "issue", "projectItems"],
            )
            return cls.build_page(await cls._execute(caller, query), caller, page_size)

        return await super().fetch_many(caller, page_size)
