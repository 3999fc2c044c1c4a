import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from expense_api.core.security import create_access_token
from expense_api.db import dynamo
from expense_api.main import app


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")


@pytest.fixture
def expenses_table(aws_credentials):
    with mock_aws():
        dynamo.reset_table_cache()
        dynamo.ensure_expenses_table()
        yield dynamo.get_expenses_table()
    dynamo.reset_table_cache()


@pytest.fixture
def client(expenses_table):
    return TestClient(app)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def alice():
    return auth_headers("user-alice")


@pytest.fixture
def bob():
    return auth_headers("user-bob")


@pytest.fixture
def headers_for():
    return auth_headers
