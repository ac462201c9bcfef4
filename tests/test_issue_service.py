import unittest
from unittest.mock import patch

from issue_workflows.application.issue_service import IssueAutomationService
from issue_workflows.domain.models import IssueEvent


class _FakeGitHubClient:
    def __init__(self, labels, project_items=None, field_values=None, project=None) -> None:
        self.labels = labels
        self.project_items = project_items or []
        self.field_values = field_values or []
        self.project = project
        self.queries = []
        self.removed = []
        self.comments = []

    async def graphql(self, query, variables=None):
        self.queries.append(query)
        if "GetLabelsByIssue" in query:
            nodes = [{"name": name} for name in self.labels]
            return {"repository": {"issue": {"labels": {"totalCount": len(nodes), "nodes": nodes}}}}
        if "GetProjectItemsByIssue" in query:
            items = self.project_items
            return {"repository": {"issue": {"projectItems": {"totalCount": len(items), "nodes": items}}}}
        if "GetFieldValuesByProjectItem" in query:
            values = self.field_values
            return {"node": {"fieldValues": {"totalCount": len(values), "nodes": values}}}
        if "GetProjectByItem" in query:
            return {"node": {"project": self.project}}
        raise AssertionError(f"Unexpected query: {query}")

    async def remove_label(self, owner, repo, issue_number, name):
        self.removed.append(name)
        return []

    async def create_comment(self, owner, repo, issue_number, body):
        self.comments.append(body)
        return {"body": body}


def _status(name):
    return {
        "__typename": "ProjectV2ItemFieldSingleSelectValue",
        "id": "PVTFV_status",
        "field": {"name": "Status"},
        "name": name,
    }


def _event(action="assigned"):
    return IssueEvent(
        event_name="issues",
        action=action,
        owner="acme",
        repository="widgets",
        issue_number=42,
        assignee="octocat",
    )


class TestIssueAutomationService(unittest.IsolatedAsyncioTestCase):
    async def test_removes_help_wanted_case_insensitively(self) -> None:
        client = _FakeGitHubClient(
            labels=["Help Wanted", "bug"],
            project_items=[{"id": "PVTI_1"}],
            field_values=[_status("In Progress")],
        )

        await IssueAutomationService(client=client).handle(_event())

        self.assertEqual(client.removed, ["Help Wanted"])
        self.assertEqual(client.comments, [])

    async def test_needs_triage_adds_warning(self) -> None:
        client = _FakeGitHubClient(
            labels=["needs triage"],
            project_items=[{"id": "PVTI_1"}],
            field_values=[_status("Available for Development")],
        )

        with patch("issue_workflows.application.issue_service.warning") as mock_warning:
            await IssueAutomationService(client=client).handle(_event())

        self.assertEqual(client.removed, [])
        self.assertEqual(len(client.comments), 1)
        self.assertTrue(client.comments[0].startswith("## :warning: Warning"))
        self.assertIn("Triage", client.comments[0])
        mock_warning.assert_called_once()

    async def test_inactive_status_adds_warning(self) -> None:
        client = _FakeGitHubClient(
            labels=[],
            project_items=[{"id": "PVTI_1"}],
            field_values=[_status("Parking Lot")],
        )

        await IssueAutomationService(client=client).handle(_event())

        self.assertEqual(len(client.comments), 1)
        self.assertIn("`Parking Lot`", client.comments[0])
        self.assertNotIn("](", client.comments[0])

    async def test_done_status_links_project(self) -> None:
        client = _FakeGitHubClient(
            labels=[],
            project_items=[{"id": "PVTI_1"}],
            field_values=[_status("Done")],
            project={"id": "PVT_1", "title": "Roadmap", "url": "https://github.com/orgs/acme/projects/3"},
        )

        with patch("issue_workflows.application.issue_service.warning") as mock_warning:
            await IssueAutomationService(client=client).handle(_event())

        self.assertEqual(len(client.comments), 1)
        self.assertIn("`Done`", client.comments[0])
        self.assertIn("[Project's](https://github.com/orgs/acme/projects/3)", client.comments[0])
        mock_warning.assert_called_once()

    async def test_no_project_counts_as_unset_status(self) -> None:
        client = _FakeGitHubClient(labels=["bug"])

        await IssueAutomationService(client=client).handle(_event())

        self.assertEqual(len(client.comments), 1)
        self.assertIn("`unset`", client.comments[0])

    async def test_other_actions_are_ignored(self) -> None:
        client = _FakeGitHubClient(labels=["help wanted"])

        await IssueAutomationService(client=client).handle(_event(action="opened"))

        self.assertEqual(client.queries, [])
        self.assertEqual(client.removed, [])
