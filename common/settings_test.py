"""Unit tests for common/settings.py."""

import importlib
import os
import unittest
import unittest.mock

import common.settings

_SETTINGS_VARS = (
    'PORT',
    'DATA_DIR',
    'VISITOR_LOG_PATH',
    'RETENTION_DAYS',
    'LOG_LEVEL',
)


class TestSettings(unittest.TestCase):
    """Tests for shared application settings."""

    def setUp(self) -> None:
        """Strip settings variables from the environment for each test."""
        # Cleanups run last-in first-out: restore the env, then reload.
        self.addCleanup(importlib.reload, common.settings)
        env = {k: v for k, v in os.environ.items() if k not in _SETTINGS_VARS}
        patcher = unittest.mock.patch.dict(os.environ, env, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_port_defaults_to_3000(self) -> None:
        """PORT defaults to 3000 when the PORT env var is not set."""
        importlib.reload(common.settings)
        self.assertEqual(common.settings.PORT, 3000)

    def test_port_reads_from_env(self) -> None:
        """PORT is read from the PORT environment variable."""
        os.environ['PORT'] = '8080'
        importlib.reload(common.settings)
        self.assertEqual(common.settings.PORT, 8080)

    def test_visitor_log_path_defaults_under_data_dir(self) -> None:
        """VISITOR_LOG_PATH defaults to index.csv inside assets/pnc."""
        importlib.reload(common.settings)
        self.assertEqual(
            common.settings.VISITOR_LOG_PATH,
            os.path.join('assets', 'pnc', 'index.csv'),
        )

    def test_visitor_log_path_follows_data_dir(self) -> None:
        """A custom DATA_DIR moves the default log file with it."""
        os.environ['DATA_DIR'] = '/var/lib/visitors'
        importlib.reload(common.settings)
        self.assertEqual(
            common.settings.VISITOR_LOG_PATH,
            os.path.join('/var/lib/visitors', 'index.csv'),
        )

    def test_visitor_log_path_explicit_override(self) -> None:
        """VISITOR_LOG_PATH wins over DATA_DIR when both are set."""
        os.environ['DATA_DIR'] = '/var/lib/visitors'
        os.environ['VISITOR_LOG_PATH'] = '/tmp/log.csv'
        importlib.reload(common.settings)
        self.assertEqual(common.settings.VISITOR_LOG_PATH, '/tmp/log.csv')

    def test_retention_days_default(self) -> None:
        """RETENTION_DAYS defaults to 30."""
        importlib.reload(common.settings)
        self.assertEqual(common.settings.RETENTION_DAYS, 30)

    def test_log_level_is_upper_cased(self) -> None:
        """LOG_LEVEL is normalised to upper case."""
        os.environ['LOG_LEVEL'] = 'debug'
        importlib.reload(common.settings)
        self.assertEqual(common.settings.LOG_LEVEL, 'DEBUG')


if __name__ == '__main__':
    unittest.main()
