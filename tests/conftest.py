import copy

import boto3
import pytest
from moto import mock_aws

from openapi_coverage.capture.store import reset_shared_store


TABLE_NAME = "openapi-coverage-test"
REGION = "us-east-1"

PETSTORE_SPEC = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.2.0"},
    "servers": [{"url": "https://api.example.com/v1"}, {"url": "https://staging.example.com/v1"}],
    "paths": {
        "/users": {
            # Declared out of order on purpose; the catalog normalizes it
            "post": {"operationId": "createUser", "summary": "Create a user", "tags": ["users"]},
            "get": {"operationId": "listUsers", "summary": "List users", "tags": ["users"]},
        },
        "/users/{id}": {
            "get": {"operationId": "getUser", "tags": ["users"]},
            "delete": {"operationId": "deleteUser", "tags": ["admin"]},
        },
        "/health": {
            "get": {"summary": "Health check"},
        },
    },
}


@pytest.fixture(autouse=True)
def shared_store():
    """Give every test a fresh process-wide observation store."""
    store = reset_shared_store()
    yield store
    reset_shared_store()


@pytest.fixture
def spec_document():
    return copy.deepcopy(PETSTORE_SPEC)


@pytest.fixture
def dynamo_table():
    """Provide a mocked DynamoDB table for testing."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name=REGION)
        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        yield table
