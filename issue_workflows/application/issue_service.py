import logging
from typing import Optional

from issue_workflows.domain.models import IssueEvent
from issue_workflows.infrastructure.actions_logging import log_group, notice, warning
from issue_workflows.infrastructure.entities.catalog import Issue

logger = logging.getLogger(__name__)

HELP_WANTED = "help wanted"
NEEDS_TRIAGE = "needs triage"
STATUS_FIELD = "Status"
# Project statuses where assigning a Contributor is not expected
INACTIVE_STATUSES = ("Done", "Parking Lot")

TRIAGE_WARNING = (
    "This Issue is still marked as being in "
    "[Triage](https://github.com/andrewvaughan/template-core/blob/main/.github/CONTRIBUTING.md#issue-triage) "
    "- however, a Contributor assignment was just made. Non-triaged issues may not be approved, and any work "
    "done on unaccepted Issues cannot be guaranteed to be road-mapped.\n\n"
    "Project Maintainers should Triage this issue or inform the Contributor on whether to move forward."
)

STATUS_WARNING = (
    "This Issue is in the {project} `{status}` status, meaning it is not currently planned for "
    "development. As a Contributor was just assigned to the Issue, please check to make sure that the Project "
    "status is correct. Contributors should check with the Project Maintainers to ensure assignment to this "
    "Issue was done purposefully."
)


class IssueAutomationService:
    """
    Reacts to `issues` webhook events by adjusting the Issue's labels and leaving comments.
    """

    def __init__(self, client=None):
        self.client = client

    async def handle(self, event: IssueEvent) -> None:
        logger.info(f"Handling `{event.event_name}.{event.action}` for Issue #{event.issue_number}.")

        if event.event_name == "issues" and event.action == "assigned":
            issue = Issue(event.issue_number, event.repository, event.owner, client=self.client)
            await self.handle_user_assigned(issue)
            return

        logger.info(f"No automation configured for `{event.event_name}.{event.action}`; nothing to do.")

    async def handle_user_assigned(self, issue: Issue) -> None:
        labels = await issue.get("labels")

        with log_group(logger, f"Removing 'Help Wanted' Label from Issue #{issue.number}"):
            help_wanted = [label for label in labels if label.name.lower() == HELP_WANTED]
            if help_wanted:
                await issue.remove_labels(help_wanted)
            else:
                logger.info(f"Label 'Help Wanted' not found on Issue #{issue.number}.")

        with log_group(logger, f"Checking for 'Needs Triage' Label on Issue #{issue.number}"):
            if any(label.name.lower() == NEEDS_TRIAGE for label in labels):
                warning(
                    logger,
                    "Assigning non-triaged issues can be indicative of not following the defined Software "
                    "Development Lifecycle. A warning will be added to the Issue explaining the risk.",
                    title=f"Label 'Needs Triage' found on Issue #{issue.number} during user assignment",
                )
                await issue.add_warning(TRIAGE_WARNING)
            else:
                notice(
                    logger,
                    "Label 'Needs Triage' did not exist on issue during user assignment. This is expected.",
                    title=f"Label 'Needs Triage' expectedly missing from Issue #{issue.number}",
                )

        with log_group(logger, f"Checking for valid status on Issue #{issue.number}"):
            status = await self.project_status(issue)

            if not status or status in INACTIVE_STATUSES:
                warning(
                    logger,
                    f"The status for Issue #{issue.number} is in Project status '{status}', which is not a part "
                    "of the Software Development Lifecycle where Contributor assignment would be expected. A "
                    "warning comment will be added to the Issue explaining this.",
                    title=f"Issue #{issue.number} in invalid status for user assignment",
                )
                url = await self.project_url(issue)
                project = f"[Project's]({url})" if url else "Project's"
                await issue.add_warning(STATUS_WARNING.format(project=project, status=status or "unset"))
            else:
                notice(
                    logger,
                    "The Issue is currently in a Project status where Contributor assignment would be expected.",
                    title=f"Issue #{issue.number} is in expected Project status for Contributor assignment",
                )

    @staticmethod
    async def project_status(issue: Issue) -> Optional[str]:
        item = await issue.project_item()
        if item is None:
            logger.debug(f"{issue!r} is not part of a Project.")
            return None

        value = await item.field_value(STATUS_FIELD)
        if value is None:
            return None

        status = await value.get("name")
        return status or None

    @staticmethod
    async def project_url(issue: Issue) -> Optional[str]:
        item = await issue.project_item()
        if item is None:
            return None

        project = await item.get("project")
        if project is None:
            return None
        return await project.get("url")
