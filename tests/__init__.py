"""
Tests package for sharebot

This package contains all unit and integration tests.

Test organization:
- test_delay.py: Tests for the delay grammar parser
- test_conditions.py: Tests for rule condition matching and content validation
- test_rules_engine.py: Tests for rule loading and evaluation into tasks
- test_dispatcher.py: Tests for task execution, the verify() gate and the scheduler
- test_adapters.py: Tests for the adapter protocol and the in-memory reference adapter
- test_telegram_client.py: Tests for the Telegram Bot API adapter (HTTP mocked)
- test_config.py: Tests for config/content loading, the adapter registry and the CLI
- conftest.py: Shared fixtures and test utilities
"""

__version__ = "1.1.0"
