import asyncio
import json
import os
import sys
import logging
from dotenv import load_dotenv

from issue_workflows.domain.exceptions import ConfigurationException
from issue_workflows.domain.models import Settings
from issue_workflows.infrastructure.acl import GitHubTranslator
from issue_workflows.infrastructure.action_context import ActionContext
from issue_workflows.infrastructure.actions_logging import configure_logging, end_all_groups
from issue_workflows.infrastructure.github_client import GitHubClient
from issue_workflows.application.issue_service import IssueAutomationService

logger = logging.getLogger(__name__)


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


def load_settings() -> Settings:
    """Reads the workflow configuration from the runner environment."""
    github_token = os.getenv("GITHUB_TOKEN")
    if not github_token:
        raise ConfigurationException("GITHUB_TOKEN is not set in the environment.")

    return Settings(
        token=github_token,
        event_name=os.getenv("GITHUB_EVENT_NAME"),
        event_path=os.getenv("GITHUB_EVENT_PATH"),
        repository=os.getenv("GITHUB_REPOSITORY"),
        api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
        graphql_url=os.getenv("GITHUB_GRAPHQL_URL", "https://api.github.com/graphql"),
        debug=_flag("ACTIONS_RUNNER_DEBUG"),
        verbose=_flag("ACTIONS_RUNNER_DEBUG_VERBOSE"),
    )


def load_event(settings: Settings):
    if not settings.event_path or not settings.event_name:
        raise ConfigurationException("GITHUB_EVENT_PATH and GITHUB_EVENT_NAME must be set.")

    with open(settings.event_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    return GitHubTranslator.to_event(payload, settings.event_name, settings.repository)


async def main():
    # Load environment variables from .env file
    load_dotenv()

    try:
        settings = load_settings()
    except ConfigurationException as e:
        configure_logging()
        logger.error(str(e))
        sys.exit(1)

    configure_logging(debug=settings.debug, verbose=settings.verbose)

    try:
        event = load_event(settings)

        async with GitHubClient(settings.token, settings.api_url, settings.graphql_url) as client:
            ActionContext.init(client, event.owner, event.repository)

            service = IssueAutomationService(client=client)
            await service.handle(event)
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)
    finally:
        end_all_groups(logger)
        ActionContext.reset()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
