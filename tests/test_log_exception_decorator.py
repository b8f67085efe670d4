"""
Tests for the log_exception decorator.

Tests cover:
- Exception logging for synchronous callbacks
- Prefix string formatting with parameter substitution
- Default return values and pass-through of successful calls
"""

from cloudhub.logger import log_exception


class TestBasicExceptionLogging:
    """Test basic exception logging functionality."""

    def test_sync_function_with_prefix(self, caplog):
        """Test sync function logs exception with prefix and returns None."""

        @log_exception("SyncOperation")
        def sync_func_with_error():
            raise ValueError("Test error from sync function")

        result = sync_func_with_error()

        assert result is None
        assert "SyncOperation: ValueError: Test error from sync function" in caplog.text
        assert "ERROR" in caplog.text

    def test_bound_method_callback(self, caplog):
        """Timer callbacks are usually bound methods."""

        class Timer:
            @log_exception("Fire timer {timer_id}")
            def fire(self, timer_id: str) -> None:
                raise RuntimeError("late")

        assert Timer().fire("t-9") is None
        assert "Fire timer t-9: RuntimeError: late" in caplog.text
        assert "timer_id='t-9'" in caplog.text

    def test_successful_call_passes_through(self):
        @log_exception("Never logged")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_default_return(self, caplog):
        @log_exception("Fallback", default_return=[])
        def failing():
            raise RuntimeError("nope")

        assert failing() == []


class TestPrefixFormatting:
    """Test prefix placeholders bound to call arguments."""

    def test_prefix_uses_bound_arguments(self, caplog):
        @log_exception("Expire notification {notification_id}")
        def expire(notification_id: str):
            raise KeyError(notification_id)

        expire("abc123")

        assert "Expire notification abc123: KeyError" in caplog.text
        assert "[notification_id='abc123']" in caplog.text

    def test_missing_placeholder_falls_back_to_raw_prefix(self, caplog):
        @log_exception("Discard ticket {ticket}")
        def discard(ticket_id: str):
            raise ValueError("gone")

        discard("t-1")

        assert "Failed to format prefix" in caplog.text
        assert "Discard ticket {ticket}: ValueError: gone" in caplog.text
