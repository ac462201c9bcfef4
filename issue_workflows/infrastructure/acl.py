from typing import Any, Dict, Optional
from issue_workflows.domain.models import IssueEvent

class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub webhook payloads into IssueEvent instances.
    """

    @staticmethod
    def to_event(payload: Dict[str, Any], event_name: str, repository: Optional[str] = None) -> IssueEvent:
        """
        Transforms an `issues` webhook payload into an IssueEvent.

        Args:
            payload (Dict[str, Any]): The JSON payload from GITHUB_EVENT_PATH.
            event_name (str): The GITHUB_EVENT_NAME of the run.
            repository (Optional[str]): Fallback `owner/name` when the payload carries no repository.

        Returns:
            IssueEvent: The event the workflow should react to.
        """
        issue_data = payload.get('issue')
        if not issue_data or 'number' not in issue_data:
            raise ValueError("issue.number is required to build IssueEvent.")

        repo_data = payload.get('repository', {})
        owner = repo_data.get('owner', {}).get('login')
        name = repo_data.get('name')

        if (not owner or not name) and repository:
            owner, name = repository.split("/", 1)
        if not owner or not name:
            raise ValueError("repository owner and name are required to build IssueEvent.")

        assignee_data = payload.get('assignee') or {}

        return IssueEvent(
            event_name=event_name,
            action=payload.get('action', ''),
            owner=owner,
            repository=name,
            issue_number=issue_data['number'],
            assignee=assignee_data.get('login'),
        )
