"""
Tests for ConfigurationGuard - single configuration run at a time
"""

import pytest

from wslstack.utils.configuration_guard import ConfigurationGuard


class TestConfigurationGuard:
    def test_second_acquire_fails(self) -> None:
        guard = ConfigurationGuard()

        assert guard.try_acquire() is True
        assert guard.try_acquire() is False
        assert guard.in_progress is True

        guard.release()
        assert guard.in_progress is False
        assert guard.try_acquire() is True

    def test_hold_releases_on_exit(self) -> None:
        guard = ConfigurationGuard()

        with guard.hold() as acquired:
            assert acquired is True
            with guard.hold() as nested:
                assert nested is False
            # The losing caller must not release the owner's guard
            assert guard.in_progress is True

        assert guard.in_progress is False

    def test_hold_releases_on_exception(self) -> None:
        guard = ConfigurationGuard()

        with pytest.raises(RuntimeError):
            with guard.hold():
                raise RuntimeError("configuration failed")

        assert guard.in_progress is False
