"""Email adapter registry.

Uses the in-memory FakeEmailAdapter by default. The adapter is chosen by the
EMAIL_ADAPTER environment variable; only "fake" ships with the storefront.
"""

from storefront.config import get_settings
from storefront.notifications.email_port import EmailPort

_current_adapter: EmailPort | None = None


def get_email_adapter() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _current_adapter
    if _current_adapter is None:
        adapter = get_settings().email_adapter
        if adapter == "fake":
            from storefront.notifications.fake_email import FakeEmailAdapter

            _current_adapter = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")
    return _current_adapter


def set_email_adapter(adapter: EmailPort) -> None:
    """Override the active email adapter (useful for tests)."""
    global _current_adapter
    _current_adapter = adapter


def reset_email_adapter() -> None:
    global _current_adapter
    _current_adapter = None
