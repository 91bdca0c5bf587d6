"""Shared test fixtures."""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from helpers import make_raw_email

from mailrouter.config import ImapConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clear_credential_env(monkeypatch):
    """Keep real credentials in the environment out of tests."""
    for name in (
        "MAILROUTER_IMAP_USERNAME",
        "MAILROUTER_IMAP_PASSWORD",
        "MAILROUTER_WEBHOOK_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def imap_config():
    """Create a test IMAP configuration."""
    return ImapConfig(
        host="imap.example.com",
        port=993,
        username="test@example.com",
        password="testpass",
    )


@pytest.fixture
def mock_imap_client():
    """Patch IMAPClient and return the instance the session will get."""
    with patch("mailrouter.imap_client.IMAPClient") as mock_class:
        mock_instance = MagicMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def raw_email():
    return make_raw_email()


@pytest.fixture
def sample_config_toml(temp_dir, monkeypatch):
    """Create a sample TOML config file."""
    # Password must come from environment variable
    monkeypatch.setenv("MAILROUTER_IMAP_PASSWORD", "secret")

    config_path = temp_dir / "config.toml"
    config_path.write_text('''
[imap]
host = "imap.test.com"
port = 143
username = "user@test.com"
use_ssl = false
folder = "Support"
filter = "UNSEEN FROM \\"customer.com\\""
done_flags = ["\\\\Seen", "Processed"]
clear_flags = ["\\\\Flagged"]
expunge = false
one_time_connect = true

[maildir]
path = "/var/mail/incoming"

[poll]
interval_seconds = 120

[webhook]
url = "https://hooks.example.com/mail"
timeout_seconds = 10

[router]
path = "myapp.routes:router"
middleware = ["myapp.middleware:audit"]
''')
    return config_path
