from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from issue_workflows.domain.exceptions import MissingFieldException

class IssueEvent(BaseModel):
    """
    Immutable model of the `issues` webhook event that triggered the workflow run.
    """
    model_config = ConfigDict(frozen=True)

    event_name: str = Field(..., description="The webhook event name, e.g. `issues`")
    action: str = Field(..., description="The activity type, e.g. `assigned`")
    owner: str = Field(..., description="Login name of the repository owner")
    repository: str = Field(..., description="Name of the repository")
    issue_number: int = Field(..., ge=1, description="Number of the Issue the event is about")
    assignee: Optional[str] = Field(None, description="Login of the user assigned, for `assigned` events")


class Settings(BaseModel):
    """
    Workflow configuration resolved from the GitHub Actions runner environment.
    """
    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, description="GitHub token or PAT used for API calls")
    event_name: Optional[str] = Field(None, description="GITHUB_EVENT_NAME")
    event_path: Optional[str] = Field(None, description="Path to the webhook payload JSON file")
    repository: Optional[str] = Field(None, description="Default `owner/name` repository")
    api_url: str = Field("https://api.github.com", description="GitHub REST API base URL")
    graphql_url: str = Field("https://api.github.com/graphql", description="GitHub GraphQL API URL")
    debug: bool = Field(False, description="ACTIONS_RUNNER_DEBUG")
    verbose: bool = Field(False, description="ACTIONS_RUNNER_DEBUG_VERBOSE")


class GraphQLQuery(BaseModel):
    """
    Everything needed to load an entity's primitive fields: the query text, its variable
    bindings, and the keys leading from the response envelope to the entity's data.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    path: List[str] = Field(default_factory=list)

    def descend(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return descend(response, self.path)


def descend(response: Dict[str, Any], path: List[str]) -> Any:
    """
    Travels down a GraphQL response to the container at the end of `path`.

    Raises:
        MissingFieldException: if any key along the path is absent.
    """
    data = response
    for key in path:
        if not isinstance(data, dict) or key not in data:
            raise MissingFieldException(
                key, f"Expected container key `{key}` in GraphQL response not found."
            )
        data = data[key]
    return data
