"""
Tests for the centralized ConfigManager.

This module tests the configuration management system to ensure it properly
handles environment variables, validation and the global instance.
"""

import os
import logging
import shutil
import tempfile
import unittest
from pathlib import Path

from exchange_rules.config import ViewerDefaults
from exchange_rules.config.config_manager import (
    ConfigManager,
    ParserSettings,
    ViewSettings,
    get_config_manager,
    reset_config_manager
)
from exchange_rules.exceptions import ConfigurationError
from exchange_rules.models import HierarchyMode


ENV_VARS = [
    'EXCHANGE_RULES_HUGE_TREE',
    'EXCHANGE_RULES_MAX_DOCUMENT_MB',
    'EXCHANGE_RULES_DEFAULT_MODE',
    'EXCHANGE_RULES_DOCUMENT_PATH',
    'EXCHANGE_RULES_LOG_LEVEL'
]


def _clear_environment():
    for var in ENV_VARS:
        if var in os.environ:
            del os.environ[var]


class TestParserSettings(unittest.TestCase):
    """Test ParserSettings class."""

    def setUp(self):
        """Set up test environment."""
        _clear_environment()

    def tearDown(self):
        """Clean up test environment."""
        _clear_environment()

    def test_default_settings(self):
        """Test default parser settings."""
        settings = ParserSettings.from_environment()

        self.assertFalse(settings.huge_tree)
        self.assertEqual(settings.max_document_mb, 200)
        self.assertEqual(settings.max_document_chars, 200 * 1024 * 1024)

    def test_environment_variable_override(self):
        """Test parser settings from environment variables."""
        os.environ['EXCHANGE_RULES_HUGE_TREE'] = 'TRUE'
        os.environ['EXCHANGE_RULES_MAX_DOCUMENT_MB'] = '5'

        settings = ParserSettings.from_environment()

        self.assertTrue(settings.huge_tree)
        self.assertEqual(settings.max_document_mb, 5)

    def test_invalid_integer(self):
        """Test non-numeric size limit is a configuration error."""
        os.environ['EXCHANGE_RULES_MAX_DOCUMENT_MB'] = 'lots'

        with self.assertRaises(ConfigurationError):
            ParserSettings.from_environment()


class TestViewSettings(unittest.TestCase):
    """Test ViewSettings class."""

    def setUp(self):
        """Set up test environment."""
        _clear_environment()

    def tearDown(self):
        """Clean up test environment."""
        _clear_environment()

    def test_default_settings(self):
        """Test default view settings."""
        settings = ViewSettings.from_environment()

        self.assertEqual(settings.default_mode, ViewerDefaults.DEFAULT_MODE)
        self.assertEqual(settings.document_path, ViewerDefaults.DOCUMENT_PATH)
        self.assertEqual(settings.log_level, 'WARNING')

    def test_environment_variable_override(self):
        """Test view settings from environment variables."""
        os.environ['EXCHANGE_RULES_DEFAULT_MODE'] = 'receiver'
        os.environ['EXCHANGE_RULES_DOCUMENT_PATH'] = 'rules/trade.xml'
        os.environ['EXCHANGE_RULES_LOG_LEVEL'] = 'debug'

        settings = ViewSettings.from_environment()

        self.assertEqual(settings.default_mode, 'receiver')
        self.assertEqual(settings.document_path, 'rules/trade.xml')
        self.assertEqual(settings.log_level, 'DEBUG')


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager class."""

    def setUp(self):
        """Set up test environment."""
        reset_config_manager()
        _clear_environment()

        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        reset_config_manager()
        _clear_environment()

    def test_config_manager_initialization(self):
        """Test ConfigManager initialization."""
        config_manager = ConfigManager(self.temp_path)

        self.assertEqual(config_manager.base_path, self.temp_path)
        self.assertIsNotNone(config_manager.parser_settings)
        self.assertIsNotNone(config_manager.view_settings)

    def test_default_mode(self):
        """Test resolving the configured hierarchy mode."""
        os.environ['EXCHANGE_RULES_DEFAULT_MODE'] = 'flat'

        config_manager = ConfigManager(self.temp_path)

        self.assertIs(config_manager.get_default_mode(), HierarchyMode.FLAT)

    def test_invalid_default_mode(self):
        """Test an unknown hierarchy mode is a configuration error."""
        os.environ['EXCHANGE_RULES_DEFAULT_MODE'] = 'alphabetical'

        config_manager = ConfigManager(self.temp_path)

        with self.assertRaises(ConfigurationError):
            config_manager.get_default_mode()

    def test_resolve_document_path(self):
        """Test relative document paths resolve against the base path."""
        config_manager = ConfigManager(self.temp_path)

        self.assertEqual(config_manager.resolve_document_path(), self.temp_path / 'default.xml')
        self.assertEqual(config_manager.resolve_document_path('rules.xml'), self.temp_path / 'rules.xml')

        absolute = self.temp_path / 'elsewhere' / 'rules.xml'
        self.assertEqual(config_manager.resolve_document_path(absolute), absolute)

    def test_get_log_level(self):
        """Test logging level lookup."""
        os.environ['EXCHANGE_RULES_LOG_LEVEL'] = 'info'

        config_manager = ConfigManager(self.temp_path)

        self.assertEqual(config_manager.get_log_level(), logging.INFO)

    def test_configuration_validation(self):
        """Test configuration validation."""
        config_manager = ConfigManager(self.temp_path)

        self.assertTrue(config_manager.validate_configuration())

    def test_configuration_validation_collects_errors(self):
        """Test every invalid setting is reported together."""
        os.environ['EXCHANGE_RULES_DEFAULT_MODE'] = 'alphabetical'
        os.environ['EXCHANGE_RULES_LOG_LEVEL'] = 'LOUD'
        os.environ['EXCHANGE_RULES_MAX_DOCUMENT_MB'] = '-1'

        config_manager = ConfigManager(self.temp_path / 'missing')

        with self.assertRaises(ConfigurationError) as context:
            config_manager.validate_configuration()

        message = str(context.exception)
        self.assertIn('Configuration validation failed', message)
        self.assertIn('alphabetical', message)
        self.assertIn('LOUD', message)
        self.assertIn('must not be negative', message)
        self.assertIn('Base path does not exist', message)

    def test_configuration_summary(self):
        """Test configuration summary."""
        config_manager = ConfigManager(self.temp_path)

        summary = config_manager.get_configuration_summary()

        self.assertIn('parser', summary)
        self.assertIn('views', summary)
        self.assertIn('paths', summary)
        self.assertIn('huge_tree', summary['parser'])
        self.assertEqual(summary['views']['default_mode'], 'standard')
        self.assertEqual(summary['paths']['base_path'], str(self.temp_path))

    def test_reload_configuration(self):
        """Test settings are re-read from the environment."""
        config_manager = ConfigManager(self.temp_path)
        os.environ['EXCHANGE_RULES_DEFAULT_MODE'] = 'source'

        config_manager.reload_configuration()

        self.assertIs(config_manager.get_default_mode(), HierarchyMode.BY_SOURCE)


class TestViewerDefaults(unittest.TestCase):
    """Test ViewerDefaults class."""

    def test_to_dict(self):
        """Test defaults export."""
        defaults = ViewerDefaults.to_dict()

        self.assertEqual(defaults['DEFAULT_MODE'], 'standard')
        self.assertEqual(defaults['MAX_DOCUMENT_MB'], 200)
        self.assertEqual(defaults['VIEW_CACHE_SIZE'], 32)
        self.assertNotIn('to_dict', defaults)


class TestGlobalConfigManager(unittest.TestCase):
    """Test global config manager functions."""

    def setUp(self):
        """Set up test environment."""
        reset_config_manager()

    def tearDown(self):
        """Clean up test environment."""
        reset_config_manager()

    def test_get_config_manager_singleton(self):
        """Test that get_config_manager returns singleton instance."""
        manager1 = get_config_manager()
        manager2 = get_config_manager()

        self.assertIs(manager1, manager2)

    def test_reset_config_manager(self):
        """Test resetting global config manager."""
        manager1 = get_config_manager()
        reset_config_manager()
        manager2 = get_config_manager()

        self.assertIsNot(manager1, manager2)


if __name__ == '__main__':
    unittest.main()
