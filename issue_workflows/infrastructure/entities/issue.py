import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from issue_workflows.domain.exceptions import MissingFieldException, OperationUnimplementedException
from issue_workflows.domain.fields import (
    FieldMap,
    collection,
    nested,
    primitive,
    registry,
    to_bool,
    to_datetime,
    to_int,
    to_str,
    to_str_list,
)
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.action_context import ActionContext
from issue_workflows.infrastructure.entities.base import GraphQLEntity

logger = logging.getLogger(__name__)

# REST field names accepted by `PATCH /repos/{owner}/{repo}/issues/{number}`
_UPDATABLE = ("title", "body", "state", "state_reason")

NOTICE_TEMPLATE = "## :thought_balloon: Notice\n\n{message}"
WARNING_TEMPLATE = "## :warning: Warning\n\n{message}"
ERROR_TEMPLATE = "## :rotating_light: Error\n\n{message}"

LabelRef = Union[str, GraphQLEntity]


@registry.register("Issue")
class Issue(GraphQLEntity):
    """
    A GitHub Issue, identified by owner, repository and number.

    Labels and comments are changed through the REST API, using Label names.
    """

    IDENTITY = ("number", "repository", "owner")
    IDENTITY_KEYS = ("number",)
    FIELDS = FieldMap({
        "active_lock_reason": primitive(to_str),
        "author": primitive(nested("login"), selection="login"),
        "author_association": primitive(to_str),
        "body": primitive(to_str),
        "body_text": primitive(to_str),
        "closed": primitive(to_bool),
        "closed_at": primitive(to_datetime),
        "created_at": primitive(to_datetime),
        "created_via_email": primitive(to_bool),
        "id": primitive(to_str),
        "includes_created_edit": primitive(to_bool),
        "is_pinned": primitive(to_bool),
        "last_edited_at": primitive(to_datetime),
        "locked": primitive(to_bool),
        "published_at": primitive(to_datetime),
        "resource_path": primitive(to_str),
        "state": primitive(to_str),
        "state_reason": primitive(to_str),
        "title": primitive(to_str),
        "tracked_issues_count": primitive(to_int),
        "updated_at": primitive(to_datetime),
        "url": primitive(to_str),
        "viewer_can_close": primitive(to_bool),
        "viewer_can_reopen": primitive(to_bool),
        "viewer_can_update": primitive(to_bool),
        "viewer_cannot_update_reasons": primitive(to_str_list),
        "viewer_did_author": primitive(to_bool),
        "labels": collection("Label"),
        "project_items": collection("ProjectItem"),
    })

    def __init__(self, number: int, repository: str = None, owner: str = None, client=None):
        if not repository or not owner:
            default_owner, default_repository = ActionContext.repo()
            repository = repository or default_repository
            owner = owner or default_owner

        super().__init__(client, number=number, repository=repository, owner=owner)

    def __repr__(self) -> str:
        return f"Issue({self.owner}/{self.repository}#{self.number})"

    def _graphql_query(self) -> GraphQLQuery:
        return GraphQLQuery(
            text=f"""
            query GetIssueByNumber($owner: String!, $repo: String!, $issueNumber: Int!) {{
              repository(owner: $owner, name: $repo, followRenames: true) {{
                issue(number: $issueNumber) {{
                  {self.FIELDS.graphql_selection()}
                }}
              }}
            }}""",
            variables={"owner": self.owner, "repo": self.repository, "issueNumber": self.number},
            path=["repository", "issue"],
        )

    async def _update(self, name: str, value: Any) -> None:
        if name not in _UPDATABLE:
            raise OperationUnimplementedException(f"Updating `Issue.{name}` is not supported.")

        if name in ("state", "state_reason") and isinstance(value, str):
            value = value.lower()

        logger.info(f"Updating `{name}` on {self!r}...")
        await self.client.update_issue(self.owner, self.repository, self.number, **{name: value})

    @classmethod
    def _identity_from(cls, data: Dict[str, Any], caller: Optional[GraphQLEntity]) -> Dict[str, Any]:
        if "number" not in data:
            raise MissingFieldException("number", "Missing required Issue field: `number`")
        return {
            "number": data["number"],
            "repository": getattr(caller, "repository", None),
            "owner": getattr(caller, "owner", None),
        }

    @classmethod
    async def fetch_many(cls, caller: GraphQLEntity, page_size: int = None) -> List["Issue"]:
        page_size = page_size or cls.PAGE_SIZE

        if caller.TYPE_NAME == "Label":
            query = GraphQLQuery(
                text=f"""
                query GetIssuesByLabel($owner: String!, $repo: String!, $labelName: String!, $pageSize: Int!) {{
                  repository(owner: $owner, name: $repo) {{
                    label(name: $labelName) {{
                      issues(first: $pageSize) {{
                        totalCount
                        nodes {{ {cls.node_selection()} }}
                      }}
                    }}
                  }}
                }}""",
                variables={
                    "owner": caller.owner,
                    "repo": caller.repository,
                    "labelName": caller.name,
                    "pageSize": page_size,
                },
                path=["repository", "label", "issues"],
            )
            return cls.build_page(await cls._execute(caller, query), caller, page_size)

        return await super().fetch_many(caller, page_size)

    # Comments ---------------------------------------------------------------------------------

    async def add_comment(self, body: str) -> Dict[str, Any]:
        """Adds a comment to the Issue, returning the REST API response."""
        logger.info(f"Adding comment to {self!r}...")

        response = await self.client.create_comment(self.owner, self.repository, self.number, body)
        self.clear_cache()

        logger.info(f"Comment added to {self!r} successfully.")
        return response

    async def add_notice(self, message: str) -> Dict[str, Any]:
        return await self.add_comment(NOTICE_TEMPLATE.format(message=message))

    async def add_warning(self, message: str) -> Dict[str, Any]:
        return await self.add_comment(WARNING_TEMPLATE.format(message=message))

    async def add_error(self, message: str) -> Dict[str, Any]:
        return await self.add_comment(ERROR_TEMPLATE.format(message=message))

    # Labels -----------------------------------------------------------------------------------

    @staticmethod
    def _label_names(labels: Union[LabelRef, Iterable[LabelRef]]) -> List[str]:
        if isinstance(labels, (str, GraphQLEntity)):
            labels = [labels]
        return [label if isinstance(label, str) else label.name for label in labels]

    async def add_labels(self, labels: Union[LabelRef, Iterable[LabelRef]]) -> None:
        """Adds one or more Labels, by name or Label object, to the Issue."""
        names = self._label_names(labels)
        if not names:
            logger.debug(f"No labels to add to {self!r}.")
            return

        logger.info(f"Adding label(s) '{', '.join(names)}' to {self!r}...")

        await self.client.add_labels(self.owner, self.repository, self.number, names)
        self.clear_cache()

        logger.info("Labels added successfully.")

    async def remove_labels(self, labels: Union[LabelRef, Iterable[LabelRef]]) -> None:
        """Removes one or more Labels, by name or Label object, from the Issue."""
        names = self._label_names(labels)
        if not names:
            logger.debug(f"No labels to remove from {self!r}.")
            return

        logger.info(f"Removing label(s) '{', '.join(names)}' from {self!r}...")

        results = await asyncio.gather(
            *(self.client.remove_label(self.owner, self.repository, self.number, name) for name in names),
            return_exceptions=True,
        )

        # Some removals may have landed even if another failed
        self.clear_cache()

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            if len(errors) > 1:
                logger.debug(f"{len(errors)} label removals failed on {self!r}; raising the first.")
            raise errors[0]

        logger.info("Labels removed successfully.")

    # Projects ---------------------------------------------------------------------------------

    async def project_item(self) -> Optional[GraphQLEntity]:
        """
        Returns the Issue's only non-archived Project item, or None when it is in no Project.
        """
        items = await self.get("project_items")

        if not items:
            return None
        if len(items) > 1:
            raise OperationUnimplementedException(
                f"{self!r} belongs to {len(items)} Projects; only a single Project is supported."
            )
        return items[0]
