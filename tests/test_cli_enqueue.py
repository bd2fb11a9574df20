"""Tests for the enqueue CLI."""

import json
from unittest import TestCase
from unittest.mock import patch

from click.testing import CliRunner

from pgq_client.cli.enqueue import main
from pgq_client.exceptions import PgqValidationError


class TestEnqueueCLI(TestCase):
    """Tests for the enqueue CLI command."""

    def setUp(self):
        self.runner = CliRunner()
        repo_patcher = patch("pgq_client.cli.enqueue.QueueRepository")
        api_patcher = patch("pgq_client.cli.enqueue.PgqAPI")
        self.mock_repo_class = repo_patcher.start()
        self.mock_api_class = api_patcher.start()
        self.addCleanup(repo_patcher.stop)
        self.addCleanup(api_patcher.stop)
        self.mock_repo = self.mock_repo_class.return_value
        self.mock_api = self.mock_api_class.return_value

    def test_enqueue_requires_queue_name(self):
        result = self.runner.invoke(main, ["--message", "{}"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Missing option", result.output)

    def test_enqueue_requires_message(self):
        result = self.runner.invoke(main, ["--queue-name", "q1"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Missing option", result.output)

    @patch("pgq_client.cli.common.os.getenv", return_value=None)
    def test_enqueue_fails_without_dsn_and_env(self, mock_getenv):
        result = self.runner.invoke(main, ["--queue-name", "q1", "--message", "{}"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("No DSN provided", result.output)

    def test_enqueue_invalid_json(self):
        result = self.runner.invoke(
            main,
            ["--queue-name", "q1", "--message", "not json", "--dsn", "postgres:///db"],
        )
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Invalid JSON", result.output)
        self.mock_api.insert_event.assert_not_called()

    def test_enqueue_success(self):
        self.mock_api.create_queue.return_value = False
        self.mock_api.insert_event.return_value = 42
        payload = {"key": "value"}

        result = self.runner.invoke(
            main,
            ["--queue-name", "q1", "--message", json.dumps(payload), "--dsn", "postgres:///db"],
        )
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Event enqueued with ID: 42", result.output)
        self.assertNotIn("created", result.output)
        self.mock_api.insert_event.assert_called_once_with("q1", "json", json.dumps(payload), extra=None)
        self.mock_repo.close.assert_called_once()

    def test_enqueue_creates_queue_and_passes_type_and_extra(self):
        self.mock_api.create_queue.return_value = True
        self.mock_api.insert_event.return_value = 1

        result = self.runner.invoke(
            main,
            [
                "--queue-name",
                "new_q",
                "--message",
                "[1, 2]",
                "--type",
                "order.created",
                "--extra",
                "a",
                "--extra",
                "b",
                "--dsn",
                "postgres:///db",
            ],
        )
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Queue new_q created", result.output)
        self.mock_api.insert_event.assert_called_once_with("new_q", "order.created", "[1, 2]", extra=["a", "b"])

    def test_enqueue_create_queue_fails(self):
        self.mock_api.create_queue.side_effect = Exception("DB error")
        result = self.runner.invoke(
            main,
            ["--queue-name", "q1", "--message", "{}", "--dsn", "postgres:///db"],
        )
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Error creating queue", result.output)
        self.mock_repo.close.assert_called_once()

    def test_enqueue_too_many_extra_leaves_backend_untouched(self):
        args = ["--queue-name", "q1", "--message", "{}", "--dsn", "postgres:///db"]
        for value in "abcde":
            args += ["--extra", value]
        result = self.runner.invoke(main, args)
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("size 4 or less", result.output)
        self.mock_repo_class.assert_not_called()
        self.mock_api.create_queue.assert_not_called()
        self.mock_api.insert_event.assert_not_called()

    def test_enqueue_insert_validation_error(self):
        self.mock_api.create_queue.return_value = False
        self.mock_api.insert_event.side_effect = PgqValidationError("queue name is required")
        result = self.runner.invoke(
            main,
            ["--queue-name", "q1", "--message", "{}", "--dsn", "postgres:///db"],
        )
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("queue name is required", result.output)
        self.mock_repo.close.assert_called_once()
