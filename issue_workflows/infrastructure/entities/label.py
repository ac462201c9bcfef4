import logging
from typing import Any, Dict, List, Optional

from issue_workflows.domain.exceptions import MissingFieldException, OperationUnimplementedException
from issue_workflows.domain.fields import FieldMap, collection, primitive, registry, to_bool, to_datetime, to_str
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.action_context import ActionContext
from issue_workflows.infrastructure.entities.base import GraphQLEntity

logger = logging.getLogger(__name__)

_UPDATABLE = ("color", "description")


@registry.register("Label")
class Label(GraphQLEntity):
    """A repository Label, identified by owner, repository and name."""

    IDENTITY = ("name", "repository", "owner")
    IDENTITY_KEYS = ("name",)
    FIELDS = FieldMap({
        "color": primitive(to_str),
        "created_at": primitive(to_datetime),
        "description": primitive(to_str),
        "id": primitive(to_str),
        "is_default": primitive(to_bool),
        "resource_path": primitive(to_str),
        "updated_at": primitive(to_datetime),
        "url": primitive(to_str),
        "issues": collection("Issue"),
    })

    def __init__(self, name: str, repository: str = None, owner: str = None, client=None):
        if not repository or not owner:
            default_owner, default_repository = ActionContext.repo()
            repository = repository or default_repository
            owner = owner or default_owner

        super().__init__(client, name=name, repository=repository, owner=owner)

    def __repr__(self) -> str:
        return f"Label({self.owner}/{self.repository}:{self.name})"

    def _graphql_query(self) -> GraphQLQuery:
        return GraphQLQuery(
            text=f"""
            query GetLabelByName($owner: String!, $repo: String!, $labelName: String!) {{
              repository(owner: $owner, name: $repo) {{
                label(name: $labelName) {{
                  {self.FIELDS.graphql_selection()}
                }}
              }}
            }}""",
            variables={"owner": self.owner, "repo": self.repository, "labelName": self.name},
            path=["repository", "label"],
        )

    async def _update(self, name: str, value: Any) -> None:
        if name not in _UPDATABLE:
            raise OperationUnimplementedException(f"Updating `Label.{name}` is not supported.")

        logger.info(f"Updating `{name}` on {self!r}...")
        await self.client.update_label(self.owner, self.repository, self.name, **{name: value})

    @classmethod
    def _identity_from(cls, data: Dict[str, Any], caller: Optional[GraphQLEntity]) -> Dict[str, Any]:
        if "name" not in data:
            raise MissingFieldException("name", "Missing required Label field: `name`")
        return {
            "name": data["name"],
            "repository": getattr(caller, "repository", None),
            "owner": getattr(caller, "owner", None),
        }

    @classmethod
    async def fetch_many(cls, caller: GraphQLEntity, page_size: int = None) -> List["Label"]:
        page_size = page_size or cls.PAGE_SIZE

        if caller.TYPE_NAME == "Issue":
            query = GraphQLQuery(
                text=f"""
                query GetLabelsByIssue($owner: String!, $repo: String!, $issueNumber: Int!, $pageSize: Int!) {{
                  repository(owner: $owner, name: $repo) {{
                    issue(number: $issueNumber) {{
                      labels(first: $pageSize) {{
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
                path=["repository", "issue", "labels"],
            )
            return cls.build_page(await cls._execute(caller, query), caller, page_size)

        return await super().fetch_many(caller, page_size)
