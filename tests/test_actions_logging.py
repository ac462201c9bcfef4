import logging
import unittest

from issue_workflows.infrastructure import actions_logging
from issue_workflows.infrastructure.actions_logging import (
    NOTICE,
    VERBOSE,
    ActionsFormatter,
    end_all_groups,
    log_group,
    mask,
)


def _record(level, message, **extra):
    record = logging.LogRecord("issue_workflows.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines = []

    def emit(self, record) -> None:
        self.lines.append(self.format(record))


class TestActionsFormatter(unittest.TestCase):
    def setUp(self) -> None:
        self.formatter = ActionsFormatter("%(message)s")

    def test_debug_and_verbose_use_debug_command(self) -> None:
        self.assertEqual(self.formatter.format(_record(logging.DEBUG, "cache miss")), "::debug::cache miss")
        self.assertEqual(self.formatter.format(_record(VERBOSE, "query")), "::debug::query")

    def test_info_is_plain(self) -> None:
        self.assertEqual(self.formatter.format(_record(logging.INFO, "Labels added.")), "Labels added.")

    def test_annotations_carry_title(self) -> None:
        self.assertEqual(
            self.formatter.format(_record(NOTICE, "expected", title="All good")),
            "::notice title=All good::expected",
        )
        self.assertEqual(
            self.formatter.format(_record(logging.WARNING, "careful", title="Issue #1: triage")),
            "::warning title=Issue #1%3A triage::careful",
        )
        self.assertEqual(self.formatter.format(_record(logging.ERROR, "a\nb")), "::error::a%0Ab")

    def test_workflow_commands_pass_through(self) -> None:
        self.assertEqual(self.formatter.format(_record(logging.INFO, "::group::Labels")), "::group::Labels")


class TestGroups(unittest.TestCase):
    def setUp(self) -> None:
        self.handler = _ListHandler()
        self.handler.setFormatter(ActionsFormatter("%(message)s"))
        self.logger = logging.getLogger("issue_workflows.test_groups")
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

    def tearDown(self) -> None:
        end_all_groups(self.logger)
        self.logger.removeHandler(self.handler)

    def test_group_closes_on_error(self) -> None:
        with self.assertRaises(ValueError):
            with log_group(self.logger, "Labels"):
                self.logger.info("inside")
                raise ValueError("boom")

        self.assertEqual(self.handler.lines, ["::group::Labels", "inside", "::endgroup::"])
        self.assertEqual(actions_logging._group_level, 0)

    def test_end_all_groups(self) -> None:
        actions_logging.start_group(self.logger, "outer")
        actions_logging.start_group(self.logger, "inner")

        end_all_groups(self.logger)

        self.assertEqual(self.handler.lines[-2:], ["::endgroup::", "::endgroup::"])

    def test_end_group_without_start_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            actions_logging.end_group(self.logger)


class TestMask(unittest.TestCase):
    def test_mask(self) -> None:
        self.assertEqual(mask("ghp_secret"), "**********")
        self.assertEqual(mask("ghp_secret", reveal=4), "ghp_******")
        self.assertEqual(mask("ghp_secret", reveal=4, fixed_length=6), "ghp_**")
