"""Tests for SessionStore and LogoutNotifier."""

from ratedesk.client.session import LogoutNotifier, Session, SessionStore


class TestSessionStore:
    """Unit tests for the in-memory session holder."""

    def test_set_get_clear(self):
        """Test the storage contract."""
        store = SessionStore()
        assert store.get() is None
        store.set(Session(display_name="alice", token="t0k"))
        assert store.get().display_name == "alice"
        assert store.token == "t0k"
        store.clear()
        assert store.get() is None
        assert store.token is None

    def test_token_not_in_repr(self):
        """Test that the credential is kept out of logs."""
        assert "secret" not in repr(Session(display_name="bob", token="secret"))


class TestLogoutNotifier:
    """Unit tests for idempotent logout delivery."""

    def test_delivers_once_until_reset(self):
        """Test that repeated notifications are no-ops while a logout is pending."""
        notifier = LogoutNotifier()
        calls = []
        notifier.subscribe(lambda: calls.append(1))

        assert notifier.notify() is True
        assert notifier.notify() is False
        assert notifier.notify() is False
        assert calls == [1]
        assert notifier.pending

        notifier.reset()
        assert notifier.notify() is True
        assert calls == [1, 1]

    def test_unsubscribe(self):
        """Test that an unsubscribed callback is no longer called."""
        notifier = LogoutNotifier()
        calls = []
        unsubscribe = notifier.subscribe(lambda: calls.append(1))
        unsubscribe()
        unsubscribe()  # Should not raise
        notifier.notify()
        assert calls == []

    def test_failing_subscriber_does_not_block_others(self):
        """Test that one broken subscriber does not stop delivery."""
        notifier = LogoutNotifier()
        calls = []

        def broken():
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(lambda: calls.append(1))
        notifier.notify()
        assert calls == [1]
