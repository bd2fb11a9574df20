"""End-to-end CLI tests: enqueue, tick, then process with real DB.

Uses PGQ_DSN from the environment and queue name test_e2e. Skip when DSN is not set.
Run with: PGQ_DSN=postgres:///db pytest tests/test_cli_e2e.py -v
"""

import contextlib
import json
import os
import subprocess
import sys
import unittest
from pathlib import Path

# Queue, consumer and handler path
E2E_QUEUE_NAME = "test_e2e"
E2E_CONSUMER_NAME = "test_e2e_worker"
# Directory that contains the "handlers" package for process CLI (handlers.test_e2e)
E2E_HANDLERS_DIR = Path(__file__).resolve().parent / "e2e_handlers"
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"


def get_dsn() -> str | None:
    """Return PGQ_DSN from environment; None if unset."""
    return os.environ.get("PGQ_DSN") or None


def run_cli(module: str, *args: str) -> subprocess.CompletedProcess:
    """Run a CLI module via subprocess; same interface as real usage."""
    cmd = [sys.executable, "-m", f"pgq_client.cli.{module}", *args]
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC_DIR)
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=60,
        cwd=PROJECT_ROOT,
        env=env,
        check=False,
    )


def run_enqueue(dsn: str, queue_name: str, message: dict) -> subprocess.CompletedProcess:
    return run_cli("enqueue", "--queue-name", queue_name, "--message", json.dumps(message), "--dsn", dsn)


def run_tick(dsn: str, queue_name: str) -> subprocess.CompletedProcess:
    return run_cli("ticker", "--queue-name", queue_name, "--action", "wait", "--dsn", dsn)


def run_process(dsn: str, queue_name: str, handlers_path: str, max_batches: int = 1) -> subprocess.CompletedProcess:
    return run_cli(
        "process",
        "--dsn",
        dsn,
        "--consumer-name",
        E2E_CONSUMER_NAME,
        "--queue-names",
        queue_name,
        "--handlers-path",
        handlers_path,
        "--max-batches",
        str(max_batches),
    )


@unittest.skipIf(not get_dsn(), "PGQ_DSN not set; skip E2E tests")
class TestCliE2E(unittest.TestCase):
    """E2E: enqueue via CLI, tick, then process via CLI with real DB."""

    @classmethod
    def setUpClass(cls) -> None:
        cls.dsn = get_dsn()
        assert cls.dsn
        cls.handlers_path = str(E2E_HANDLERS_DIR)
        if not E2E_HANDLERS_DIR.is_dir():
            raise FileNotFoundError(f"E2E handlers dir not found: {E2E_HANDLERS_DIR}")

    def setUp(self) -> None:
        """Ensure the test queue exists and the consumer is registered before events arrive."""
        from pgq_client.adapter_psycopg import PsycopgAdapter  # noqa: PLC0415
        from pgq_client.api import PgqAPI  # noqa: PLC0415

        self.repo = PsycopgAdapter(dsn=self.dsn)
        self.repo.execute("CREATE EXTENSION IF NOT EXISTS pgq")
        self.api = PgqAPI(self.repo)
        self.api.create_queue(E2E_QUEUE_NAME)
        self.api.register_consumer(E2E_QUEUE_NAME, E2E_CONSUMER_NAME)

    def tearDown(self) -> None:
        """Drop test queue and close repo."""
        if hasattr(self, "repo"):
            with contextlib.suppress(Exception):
                self.api.drop_queue(E2E_QUEUE_NAME, force=True)
            self.repo.close()

    def test_enqueue_then_process_consumes_event(self) -> None:
        """Enqueue one event via CLI, tick, process via CLI; the batch is finished."""
        enq = run_enqueue(self.dsn, E2E_QUEUE_NAME, {"e2e": True, "id": 1})
        self.assertEqual(enq.returncode, 0, f"enqueue stderr: {enq.stderr!r} stdout: {enq.stdout!r}")
        self.assertIn("Event enqueued", enq.stdout)

        tick = run_tick(self.dsn, E2E_QUEUE_NAME)
        self.assertEqual(tick.returncode, 0, f"ticker stderr: {tick.stderr!r}")

        proc = run_process(self.dsn, E2E_QUEUE_NAME, self.handlers_path)
        self.assertEqual(proc.returncode, 0, f"process stderr: {proc.stderr!r} stdout: {proc.stdout!r}")
        self.assertIn("1 handled, 0 retried", proc.stdout)

        # Run process again; no batch left, should exit 0 and do nothing
        proc2 = run_process(self.dsn, E2E_QUEUE_NAME, self.handlers_path)
        self.assertEqual(proc2.returncode, 0)
        self.assertNotIn("handled", proc2.stdout)

    def test_enqueue_then_process_multiple_events(self) -> None:
        """Enqueue two events, process both in one batch."""
        for i in range(2):
            enq = run_enqueue(self.dsn, E2E_QUEUE_NAME, {"n": i})
            self.assertEqual(enq.returncode, 0, f"enqueue #{i} failed: {enq.stderr!r}")
        self.assertEqual(run_tick(self.dsn, E2E_QUEUE_NAME).returncode, 0)

        proc = run_process(self.dsn, E2E_QUEUE_NAME, self.handlers_path, max_batches=10)
        self.assertEqual(proc.returncode, 0, f"process stderr: {proc.stderr!r}")
        self.assertIn("2 handled, 0 retried", proc.stdout)
        self.assertIsNone(self.api.next_batch(E2E_QUEUE_NAME, E2E_CONSUMER_NAME))
