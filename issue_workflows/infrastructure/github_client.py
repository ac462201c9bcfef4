import aiohttp
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from issue_workflows.domain.exceptions import GraphQLException
from issue_workflows.infrastructure.actions_logging import verbose

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)

class GitHubClient:
    """
    Client for the GitHub GraphQL and REST APIs.

    Every method issues exactly one request. Failures are not retried: HTTP errors surface as
    `aiohttp.ClientResponseError` and GraphQL-level errors as `GraphQLException`.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "issue-workflows",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GitHubClient":
        if self.session is None:
            self.session = aiohttp.ClientSession(headers=self.headers, timeout=REQUEST_TIMEOUT)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    async def close(self) -> None:
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    # GraphQL ----------------------------------------------------------------------------------

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Executes a GraphQL query and returns its `data` envelope.
        """
        payload = {"query": query, "variables": variables or {}}

        logger.debug("Calling GitHub GraphQL API...")
        verbose(logger, f"Query: {query}")
        verbose(logger, f"Variables: {payload['variables']}")

        async with self.session.post(self.graphql_url, json=payload, headers=self.headers) as response:
            response.raise_for_status()
            data = await response.json()

        # GraphQL-level errors can occur even with HTTP 200
        if data.get('errors'):
            raise GraphQLException(data['errors'])

        logger.debug("GraphQL API call complete.")
        verbose(logger, f"Full GraphQL API response: {data}")

        return data.get('data') or {}

    # REST -------------------------------------------------------------------------------------

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug(f"Calling GitHub REST API: {method} {path}")

        async with self.session.request(method, url, json=body, headers=self.headers) as response:
            response.raise_for_status()
            if response.status == 204:
                return None
            return await response.json()

    async def add_labels(self, owner: str, repo: str, issue_number: int, labels: Iterable[str]) -> List[Dict]:
        return await self._request(
            "POST", f"/repos/{owner}/{repo}/issues/{issue_number}/labels", {"labels": list(labels)}
        )

    async def remove_label(self, owner: str, repo: str, issue_number: int, name: str) -> List[Dict]:
        return await self._request(
            "DELETE", f"/repos/{owner}/{repo}/issues/{issue_number}/labels/{quote(name, safe='')}"
        )

    async def create_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/repos/{owner}/{repo}/issues/{issue_number}/comments", {"body": body}
        )

    async def update_issue(self, owner: str, repo: str, issue_number: int, **fields: Any) -> Dict[str, Any]:
        return await self._request("PATCH", f"/repos/{owner}/{repo}/issues/{issue_number}", fields)

    async def update_label(self, owner: str, repo: str, name: str, **fields: Any) -> Dict[str, Any]:
        return await self._request("PATCH", f"/repos/{owner}/{repo}/labels/{quote(name, safe='')}", fields)
