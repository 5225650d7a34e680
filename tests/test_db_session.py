"""
Tests for get_db_session - commit, rollback and close handling
"""

from unittest.mock import Mock

import pytest

from wslstack.models import database
from wslstack.utils.db_session import get_db_session


class TestGetDbSession:
    def test_commits_and_closes_on_success(self) -> None:
        session = Mock()

        with get_db_session(lambda: session) as db:
            assert db is session

        session.commit.assert_called_once()
        session.rollback.assert_not_called()
        session.close.assert_called_once()

    def test_rolls_back_and_closes_on_error(self) -> None:
        session = Mock()

        with pytest.raises(ValueError):
            with get_db_session(lambda: session):
                raise ValueError("bad write")

        session.commit.assert_not_called()
        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_is_the_only_session_entry_point(self) -> None:
        assert not hasattr(database, "get_db")
        assert hasattr(database, "SessionLocal")
