"""
Configuration store tests (keys, validation, reset).

Conventions
- Test method names follow CamelCase per project convention.
- Every test works on its own Registry / Configuration instance.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cmdtree import Configuration, ConfigurationError, Registry, DEFAULTS


class TestConfiguration(TestCase):
    """Behavioral tests for the configuration store."""

    def testDefaults(self):
        config = Configuration()
        self.assertEqual(dict(DEFAULTS), {key: config[key] for key in config})
        self.assertEqual(config["text_header_usage"], "Usage: %0 %command %params")
        self.assertEqual(config["text_required"], " (required)")

    def testConfigureKnownKey(self):
        config = Configuration()
        config.configure(text_header_options="Flags:")
        self.assertEqual(config["text_header_options"], "Flags:")

    def testUnknownKeyRaises(self):
        config = Configuration()
        with self.assertRaises(ConfigurationError) as context:
            config.configure(text_header_bogus="x")
        self.assertEqual(str(context.exception), "unknown configuration key 'text_header_bogus'")

    def testUnknownKeyLeavesStoreUntouched(self):
        config = Configuration()
        with self.assertRaises(ConfigurationError):
            config.configure(text_help="Help!", frobnitz="x")
        self.assertEqual(config["text_help"], "Show this message")

    def testNonStringValueRaises(self):
        with self.assertRaises(ConfigurationError):
            Configuration(text_required=42)

    def testHelpLabelAcceptsNone(self):
        config = Configuration(text_help=None)
        self.assertIsNone(config["text_help"])

    def testResetRestoresDefaults(self):
        config = Configuration(text_header_topcommands="TOPCMD")
        config.reset()
        self.assertEqual(config["text_header_topcommands"], "Commands:")

    def testUnknownKeyFailsBeforeInvocation(self):
        registry = Registry()
        with self.assertRaises(ConfigurationError):
            registry.configure(text_nonsense="x")
        # nothing was declared, nothing can be invoked
        self.assertEqual(registry.scopes, ())

    def testRegistryResetRestoresConfiguration(self):
        registry = Registry()
        registry.configure(text_header_subcommands="SUBCMD")
        registry.command("sub")
        registry.reset()
        self.assertEqual(registry.config["text_header_subcommands"], "Subcommands:")
        self.assertEqual(registry.scopes, ())


if __name__ == "__main__":
    unittest.main()
