import pytest

from splitledger import create_app
from splitledger.config import TestingConfig
from splitledger.core import Ledger


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ledger():
    ledger = Ledger()
    for name in ("A", "B", "C"):
        ledger.add_member(name)
    return ledger
