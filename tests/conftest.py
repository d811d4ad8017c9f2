"""Shared fixtures for checkin_stats tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from checkin_store import CheckInStore, RatingStore


@pytest.fixture()
def check_in_store(tmp_path):
    return CheckInStore(tmp_path / "checkins.jsonl")


@pytest.fixture()
def rating_store(tmp_path):
    return RatingStore(tmp_path / "ratings.jsonl")


@pytest.fixture()
def client(check_in_store, rating_store):
    """TestClient for app.py backed by stores in a temp directory.

    Resets the module-level payload cache between tests.
    """
    import app as app_module

    with (
        patch.object(app_module, "_cache", {}),
        patch.object(app_module, "check_in_store", check_in_store),
        patch.object(app_module, "rating_store", rating_store),
    ):
        with TestClient(app_module.app) as tc:
            yield tc
