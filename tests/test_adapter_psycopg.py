"""Tests for the psycopg adapter with the connection pool mocked out."""

from unittest import TestCase
from unittest.mock import MagicMock, patch

from pgq_client.adapter_psycopg import PsycopgAdapter


class TestPsycopgAdapter(TestCase):
    def setUp(self):
        patcher = patch("pgq_client.adapter_psycopg.ConnectionPool")
        self.mock_pool_class = patcher.start()
        self.addCleanup(patcher.stop)
        self.pool = self.mock_pool_class.return_value
        self.conn = self.pool.connection.return_value.__enter__.return_value
        self.cur = self.conn.cursor.return_value.__enter__.return_value
        self.adapter = PsycopgAdapter(dsn="postgres://user@localhost/db", min_size=1, max_size=2)

    def test_opens_pool_with_dsn(self):
        kwargs = self.mock_pool_class.call_args.kwargs
        self.assertEqual(kwargs["conninfo"], "postgres://user@localhost/db")
        self.assertEqual(kwargs["min_size"], 1)
        self.assertEqual(kwargs["max_size"], 2)
        self.assertIn("row_factory", kwargs["kwargs"])

    @patch.dict("os.environ", {"PGQ_DSN": ""}, clear=False)
    def test_requires_dsn(self):
        with self.assertRaises(ValueError) as ctx:
            PsycopgAdapter()
        self.assertIn("No DSN provided", str(ctx.exception))

    @patch.dict("os.environ", {"PGQ_DSN": "postgres://env@localhost/db"}, clear=False)
    def test_dsn_from_env(self):
        PsycopgAdapter()
        self.assertEqual(self.mock_pool_class.call_args.kwargs["conninfo"], "postgres://env@localhost/db")

    def test_execute(self):
        self.adapter.execute("CLOSE cur")
        self.cur.execute.assert_called_once_with("CLOSE cur", ())

    def test_select_all(self):
        self.cur.fetchall.return_value = [{"a": 1}, {"a": 2}]
        rows = self.adapter.select_all("SELECT * FROM pgq.get_batch_events(%s)", 5)
        self.assertEqual(rows, [{"a": 1}, {"a": 2}])
        self.cur.execute.assert_called_once_with("SELECT * FROM pgq.get_batch_events(%s)", (5,))

    def test_select_one(self):
        self.cur.fetchone.return_value = {"a": 1}
        self.assertEqual(self.adapter.select_one("SELECT 1"), {"a": 1})

    def test_select_value(self):
        self.cur.fetchone.return_value = {"create_queue": 1}
        self.assertEqual(self.adapter.select_value("SELECT pgq.create_queue(%s)", "q"), 1)

    def test_select_value_no_row(self):
        self.cur.fetchone.return_value = None
        self.assertIsNone(self.adapter.select_value("SELECT 1 WHERE false"))

    def test_select_values(self):
        self.cur.fetchall.return_value = [{"queue_name": "a"}, {"queue_name": "b"}]
        self.assertEqual(self.adapter.select_values("SELECT queue_name FROM pgq.get_queue_info()"), ["a", "b"])

    def test_transaction_shares_one_connection(self):
        self.cur.fetchall.return_value = []
        with self.adapter.transaction() as conn:
            self.assertIs(conn, self.conn)
            self.adapter.select_all("SELECT 1")
            self.adapter.select_all("SELECT 2")
        self.assertEqual(self.pool.connection.call_count, 1)

        self.adapter.select_all("SELECT 3")
        self.assertEqual(self.pool.connection.call_count, 2)

    def test_transaction_opens_transaction_on_connection(self):
        with self.adapter.transaction():
            self.conn.transaction.assert_called_once_with()
            self.conn.transaction.return_value.__enter__.assert_called_once()
        self.conn.transaction.return_value.__exit__.assert_called_once_with(None, None, None)

    def test_nested_transaction_uses_savepoint(self):
        with self.adapter.transaction():
            with self.adapter.transaction() as inner:
                self.assertIs(inner, self.conn)
        # the outer transaction plus one savepoint, on the same pooled connection
        self.assertEqual(self.conn.transaction.call_count, 2)
        self.assertEqual(self.pool.connection.call_count, 1)

    def test_nested_first_block_rolls_back_with_outer(self):
        outer_tx = MagicMock()
        outer_tx.__exit__.return_value = False
        inner_tx = MagicMock()
        inner_tx.__exit__.return_value = False
        self.conn.transaction.side_effect = [outer_tx, inner_tx]

        with self.assertRaises(RuntimeError):
            with self.adapter.transaction():
                with self.adapter.transaction():
                    self.adapter.execute("INSERT INTO t VALUES (1)")
                inner_tx.__exit__.assert_called_once_with(None, None, None)
                outer_tx.__exit__.assert_not_called()
                raise RuntimeError("boom")

        # the nested block only released its savepoint; the outer transaction got the error
        exc_type = outer_tx.__exit__.call_args.args[0]
        self.assertIs(exc_type, RuntimeError)
        self.assertEqual(self.pool.connection.call_count, 1)

    def test_transaction_unbinds_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.adapter.transaction():
                raise RuntimeError("boom")
        self.adapter.select_all("SELECT 1")
        self.assertEqual(self.pool.connection.call_count, 2)

    def test_close_and_context_manager(self):
        with self.adapter as adapter:
            self.assertIs(adapter, self.adapter)
        self.pool.close.assert_called_once()
