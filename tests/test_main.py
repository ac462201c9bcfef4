import json
import os
import tempfile
import unittest
from unittest.mock import patch

from issue_workflows.domain.exceptions import ConfigurationException
from issue_workflows.domain.models import Settings
from issue_workflows.main import load_event, load_settings


class TestLoadSettings(unittest.TestCase):
    def test_missing_token_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigurationException):
                load_settings()

    def test_reads_runner_environment(self) -> None:
        env = {
            "GITHUB_TOKEN": "ghp_test",
            "GITHUB_EVENT_NAME": "issues",
            "GITHUB_EVENT_PATH": "/tmp/event.json",
            "GITHUB_REPOSITORY": "acme/widgets",
            "ACTIONS_RUNNER_DEBUG": "true",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()

        self.assertEqual(settings.token, "ghp_test")
        self.assertEqual(settings.event_name, "issues")
        self.assertEqual(settings.repository, "acme/widgets")
        self.assertEqual(settings.api_url, "https://api.github.com")
        self.assertTrue(settings.debug)
        self.assertFalse(settings.verbose)


class TestLoadEvent(unittest.TestCase):
    def test_reads_payload_file(self) -> None:
        payload = {
            "action": "assigned",
            "issue": {"number": 42},
            "repository": {"name": "widgets", "owner": {"login": "acme"}},
        }
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "event.json")
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)

            event = load_event(Settings(token="t", event_name="issues", event_path=path))

        self.assertEqual(event.issue_number, 42)
        self.assertEqual(event.action, "assigned")

    def test_missing_event_path_raises(self) -> None:
        with self.assertRaises(ConfigurationException):
            load_event(Settings(token="t"))
