from typing import ClassVar

from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.entities.base import GraphQLEntity


class NodeEntity(GraphQLEntity):
    """An entity identified by its global GraphQL node ID and loaded through `node(id:)`."""

    GRAPHQL_TYPE: ClassVar[str] = "Node"
    IDENTITY = ("id",)
    IDENTITY_KEYS = ("id",)

    def __init__(self, id: str, client=None, **identity):
        super().__init__(client, id=id, **identity)

    def _selection(self) -> str:
        return f"... on {self.GRAPHQL_TYPE} {{ {self.fields().graphql_selection(' ')} }}"

    def _graphql_query(self) -> GraphQLQuery:
        return GraphQLQuery(
            text=f"""
            query Get{self.GRAPHQL_TYPE}ById($id: ID!) {{
              node(id: $id) {{
                {self._selection()}
              }}
            }}""",
            variables={"id": self.id},
            path=["node"],
        )
