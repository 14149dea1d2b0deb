"""
tests/conftest.py - shared pytest fixtures

Replaces boto3 sessions (MagicMock or moto) and the I.P. echo / DNS lookups
with mocks so that no test touches the network.
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import boto3
import moto
import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Dummy credentials in case anything reaches botocore"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    yield


@pytest.fixture
def mock_ec2():
    ec2 = MagicMock()
    ec2.describe_security_groups.return_value = {
        "SecurityGroups": [{"GroupId": "sg-12345678", "GroupName": "SelfAdd"}]
    }
    ec2.authorize_security_group_ingress.return_value = {"Return": True}
    return ec2


@pytest.fixture
def mock_sts():
    sts = MagicMock()
    sts.get_caller_identity.return_value = {
        "UserId": "AIDAEXAMPLE",
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:user/tester",
    }
    return sts


@pytest.fixture
def mock_boto3_session(mock_ec2, mock_sts):
    """boto3 Session class as seen by awsauthorize.app"""
    clients = {"ec2": mock_ec2, "sts": mock_sts}
    with patch("awsauthorize.app.Session") as mock_session_class:
        mock_session = mock_session_class.return_value
        mock_session.client.side_effect = lambda service: clients[service]
        yield mock_session_class


@pytest.fixture
def mock_public_ip():
    with patch("awsauthorize.app.requests.get") as mock_get:
        mock_get.return_value.text = "203.0.113.7\n"
        yield mock_get


@pytest.fixture
def mock_dns():
    with patch("awsauthorize.app.socket.gethostbyname") as mock_lookup:
        mock_lookup.return_value = "52.46.128.1"
        yield mock_lookup


@pytest.fixture
def moto_ec2(monkeypatch):
    """EC2 and STS served by moto, with one SelfAdd security group"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    with moto.mock_aws():
        ec2 = boto3.client("ec2", region_name="us-east-1")
        group = ec2.create_security_group(GroupName="SelfAdd", Description="awsauthorize tests")
        yield ec2, group["GroupId"]
