import logging
from typing import Any, Dict, List, Optional

from issue_workflows.domain.exceptions import MissingFieldException
from issue_workflows.domain.fields import (
    FieldMap,
    nested,
    primitive,
    registry,
    to_date,
    to_datetime,
    to_float,
    to_int,
    to_str,
)
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.entities.base import GraphQLEntity
from issue_workflows.infrastructure.entities.node import NodeEntity

logger = logging.getLogger(__name__)

# https://docs.github.com/en/graphql/reference/interfaces#projectv2itemfieldvaluecommon
COMMON_FIELDS = FieldMap({
    "created_at": primitive(to_datetime),
    "database_id": primitive(to_int),
    "field_name": primitive(nested("name"), api_name="field", selection="... on ProjectV2FieldCommon { name }"),
    "updated_at": primitive(to_datetime),
})

# Union members implementing ProjectV2ItemFieldValueCommon, by GraphQL type name
TYPE_FIELDS = {
    "ProjectV2ItemFieldDateValue": FieldMap({
        "date": primitive(to_date),
    }),
    "ProjectV2ItemFieldIterationValue": FieldMap({
        "duration": primitive(to_int),
        "iteration_id": primitive(to_str),
        "start_date": primitive(to_date),
        "title": primitive(to_str),
        "title_html": primitive(to_str, api_name="titleHTML"),
    }),
    "ProjectV2ItemFieldNumberValue": FieldMap({
        "number": primitive(to_float),
    }),
    "ProjectV2ItemFieldSingleSelectValue": FieldMap({
        "color": primitive(to_str),
        "description": primitive(to_str),
        "name": primitive(to_str),
        "option_id": primitive(to_str),
    }),
    "ProjectV2ItemFieldTextValue": FieldMap({
        "text": primitive(to_str),
    }),
}

_MERGED = {type_name: COMMON_FIELDS.merge(fields) for type_name, fields in TYPE_FIELDS.items()}
_NO_FIELDS = FieldMap({})


@registry.register("ProjectItemFieldValue")
class ProjectItemFieldValue(NodeEntity):
    """
    The value a Project item holds for one Project field.

    GitHub models this as a union, so the fields available depend on `type_name`. Values of
    union members without the common interface (labels, milestones, users, ...) expose no
    fields.
    """

    GRAPHQL_TYPE = "ProjectV2ItemFieldValue"
    IDENTITY = ("id", "type_name")
    IDENTITY_KEYS = ("id", "__typename")
    FIELDS = COMMON_FIELDS

    def __init__(self, id: str, type_name: str = None, client=None):
        super().__init__(id, client=client, type_name=type_name)

    def fields(self) -> FieldMap:
        return _MERGED.get(self.type_name, _NO_FIELDS)

    @classmethod
    def node_selection(cls, separator: str = " ") -> str:
        fragments = [f"... on ProjectV2ItemFieldValueCommon {{ id {COMMON_FIELDS.graphql_selection(separator)} }}"]
        fragments += [
            f"... on {type_name} {{ {fields.graphql_selection(separator)} }}"
            for type_name, fields in TYPE_FIELDS.items()
        ]
        return separator.join(["__typename"] + fragments)

    def _selection(self) -> str:
        return self.node_selection()

    @classmethod
    def _identity_from(cls, data: Dict[str, Any], caller: Optional[GraphQLEntity]) -> Dict[str, Any]:
        if "__typename" not in data:
            raise MissingFieldException("__typename", "Missing required ProjectItemFieldValue field: `__typename`")
        # Union members without the common interface carry no ID
        return {"id": data.get("id"), "type_name": data["__typename"]}

    @classmethod
    async def fetch_many(cls, caller: GraphQLEntity, page_size: int = None) -> List["ProjectItemFieldValue"]:
        page_size = page_size or cls.PAGE_SIZE

        if caller.TYPE_NAME == "ProjectItem":
            query = GraphQLQuery(
                text=f"""
                query GetFieldValuesByProjectItem($itemId: ID!, $pageSize: Int!) {{
                  node(id: $itemId) {{
                    ... on ProjectV2Item {{
                      fieldValues(first: $pageSize) {{
                        totalCount
                        nodes {{ {cls.node_selection()} }}
                      }}
                    }}
                  }}
                }}""",
                variables={"itemId": caller.id, "pageSize": page_size},
                path=["node", "fieldValues"],
            )
            return cls.build_page(await cls._execute(caller, query), caller, page_size)

        return await super().fetch_many(caller, page_size)
