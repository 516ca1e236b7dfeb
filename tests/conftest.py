from __future__ import annotations

import uuid

import pytest


@pytest.fixture()
def org_id() -> uuid.UUID:
    return uuid.UUID("7f1c2a4e-0a7b-4c7e-9a35-5d2f1b6e8c11")
