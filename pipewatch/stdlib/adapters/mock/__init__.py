"""Mock adapters for testing."""

from pipewatch.stdlib.adapters.mock.mock_remote import MockRemoteState, RecordedCall

__all__ = ["MockRemoteState", "RecordedCall"]
