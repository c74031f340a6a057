"""Tests for bootstrap/logging_utils.py: console/file handlers and result logging."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
import unittest
from logging.handlers import RotatingFileHandler

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bootstrap.logging_utils import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_BYTES,
    add_rotating_file_handler,
    get_bootstrap_logger,
    get_standard_formatter,
    log_subprocess_result,
    summarize_stderr,
)


def close_handlers(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestGetStandardFormatter(unittest.TestCase):
    def test_format_string(self):
        fmt = get_standard_formatter()
        self.assertIsInstance(fmt, logging.Formatter)
        self.assertIn('%(asctime)s', fmt._fmt)
        self.assertIn('%(levelname)', fmt._fmt)


class TestGetBootstrapLogger(unittest.TestCase):
    def test_console_handler_reused(self):
        logger = get_bootstrap_logger(name='bootstrap_test_console')
        self.addCleanup(close_handlers, logger)
        get_bootstrap_logger(name='bootstrap_test_console')
        self.assertEqual(len(logger.handlers), 1)
        self.assertFalse(logger.propagate)

    def test_verbose_sets_console_debug(self):
        logger = get_bootstrap_logger(name='bootstrap_test_verbose', verbose=True)
        self.addCleanup(close_handlers, logger)
        self.assertEqual(logger.handlers[0].level, logging.DEBUG)
        get_bootstrap_logger(name='bootstrap_test_verbose')
        self.assertEqual(logger.handlers[0].level, logging.INFO)

    def test_file_logging(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, 'nested', 'bootstrap.log')
            logger = get_bootstrap_logger(log_file, name='bootstrap_test_file', console_output=False)
            logger.debug('  Running: apt-get update')
            close_handlers(logger)

            with open(log_file) as f:
                content = f.read()
        self.assertIn('DEBUG', content)
        self.assertIn('Running: apt-get update', content)


class TestAddRotatingFileHandler(unittest.TestCase):
    def test_rotation_settings(self):
        logger = logging.getLogger('bootstrap_test_rotation')
        self.addCleanup(close_handlers, logger)
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertTrue(add_rotating_file_handler(logger, os.path.join(tmpdir, 'a.log')))
            handler = logger.handlers[0]
            self.assertIsInstance(handler, RotatingFileHandler)
            self.assertEqual(handler.maxBytes, DEFAULT_LOG_MAX_BYTES)
            self.assertEqual(handler.backupCount, DEFAULT_LOG_BACKUP_COUNT)
            close_handlers(logger)

    def test_same_file_added_once(self):
        logger = logging.getLogger('bootstrap_test_dedupe')
        self.addCleanup(close_handlers, logger)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'a.log')
            add_rotating_file_handler(logger, path)
            add_rotating_file_handler(logger, path)
            self.assertEqual(len(logger.handlers), 1)
            close_handlers(logger)

    def test_unwritable_location(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = os.path.join(tmpdir, 'file')
            with open(blocker, 'w') as f:
                f.write('x')
            logger = logging.getLogger('bootstrap_test_unwritable')
            self.assertFalse(add_rotating_file_handler(logger, os.path.join(blocker, 'sub', 'a.log')))
            self.assertEqual(logger.handlers, [])


class TestLogSubprocessResult(unittest.TestCase):
    def setUp(self):
        self.logger = logging.getLogger('bootstrap_test_subprocess')

    def test_success(self):
        result = subprocess.CompletedProcess(['true'], 0, '', '')
        with self.assertLogs(self.logger, level='DEBUG') as logs:
            self.assertTrue(log_subprocess_result(self.logger, 'reload ssh', result))
        self.assertIn('✓ reload ssh', logs.output[0])

    def test_failure(self):
        result = subprocess.CompletedProcess(['false'], 1, '', 'Job for ssh.service failed\n')
        with self.assertLogs(self.logger, level='WARNING') as logs:
            self.assertFalse(log_subprocess_result(self.logger, 'reload ssh', result))
        self.assertIn('Job for ssh.service failed', logs.output[0])


class TestSummarizeStderr(unittest.TestCase):
    def test_empty(self):
        result = subprocess.CompletedProcess([], 100, '', '')
        self.assertEqual(summarize_stderr(result), 'exit code 100')

    def test_truncated(self):
        result = subprocess.CompletedProcess([], 1, '', 'a\nb\nc\nd\n')
        self.assertEqual(summarize_stderr(result), 'a | b | c | ...')

    def test_bytes(self):
        result = subprocess.CompletedProcess([], 1, b'', b'E: locked\n')
        self.assertEqual(summarize_stderr(result), 'E: locked')


if __name__ == '__main__':
    unittest.main()
