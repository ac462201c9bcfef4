import os
import unittest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
WORKFLOW = os.path.join(ROOT, ".github", "workflows", "auto-issue-assign-user.yml")


class TestAssignWorkflow(unittest.TestCase):
    def setUp(self) -> None:
        with open(WORKFLOW, encoding="utf-8") as handle:
            self.workflow = handle.read()

    def test_triggers_on_issue_assignment(self) -> None:
        self.assertIn("issues:", self.workflow)
        self.assertIn("- assigned", self.workflow)
        self.assertIn("issues: write", self.workflow)

    def test_runs_console_script_with_token(self) -> None:
        with open(os.path.join(ROOT, "pyproject.toml"), encoding="utf-8") as handle:
            pyproject = handle.read()

        self.assertIn('issue-workflows = "issue_workflows.main:run"', pyproject)
        self.assertIn("pip install .", self.workflow)
        self.assertIn("run: issue-workflows", self.workflow)
        self.assertIn("GITHUB_TOKEN: ${{ secrets.PAT || secrets.GITHUB_TOKEN }}", self.workflow)
