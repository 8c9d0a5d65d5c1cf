"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(make_session, sts_client):
        # make_session: 서비스별 MagicMock client를 돌려주는 가짜 boto3 Session
        # sts_client: AssumeRole 호출을 세는 STS client 모킹
        pass
"""

import itertools
import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

CURRENT_ACCOUNT_ID = "123456789012"


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "ap-northeast-2")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation,
    )


@pytest.fixture
def client_error():
    """ClientError 생성 헬퍼 픽스처"""
    return create_mock_client_error


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def sts_client():
    """STS 클라이언트 모킹

    assume_role은 호출마다 서로 다른 임시 키를 돌려주며,
    denied_accounts에 넣은 계정은 AccessDenied를 던집니다.
    """
    mock_client = MagicMock()
    mock_client.denied_accounts = set()
    counter = itertools.count(1)

    mock_client.get_caller_identity.return_value = {
        "UserId": "AIDATEST123",
        "Account": CURRENT_ACCOUNT_ID,
        "Arn": f"arn:aws:iam::{CURRENT_ACCOUNT_ID}:user/test-user",
    }

    def assume_role(RoleArn: str, RoleSessionName: str, DurationSeconds: int = 900, **kwargs: Any):
        account_id = RoleArn.split(":")[4]
        if account_id in mock_client.denied_accounts:
            raise create_mock_client_error("AccessDenied", f"not authorized to assume {RoleArn}", "AssumeRole")
        n = next(counter)
        return {
            "Credentials": {
                "AccessKeyId": f"ASIATEST{n:04d}",
                "SecretAccessKey": f"secret-{n}",
                "SessionToken": f"token-{n}",
            }
        }

    mock_client.assume_role.side_effect = assume_role
    yield mock_client


@pytest.fixture
def make_session():
    """가짜 boto3 Session 팩토리

    Args (팩토리):
        clients: 서비스 이름 -> client 객체. 없는 서비스는 MagicMock 생성
        credentials: get_credentials() 반환값 (기본 None)
    """

    def factory(clients: dict[str, Any] | None = None, credentials: Any = None) -> MagicMock:
        registry: dict[str, Any] = dict(clients or {})
        session = MagicMock()
        session.region_name = "ap-northeast-2"
        session.get_credentials.return_value = credentials

        def client(service_name: str, *args: Any, **kwargs: Any) -> Any:
            if service_name not in registry:
                registry[service_name] = MagicMock()
            return registry[service_name]

        session.client.side_effect = client
        session.clients = registry
        return session

    return factory


@pytest.fixture
def base_session(make_session, sts_client):
    """STS 모킹이 연결된 기본 Session"""
    return make_session({"sts": sts_client})


@pytest.fixture
def broker(base_session):
    """기본 Session 위의 Credential Broker"""
    from org_inventory.auth.broker import CredentialBroker

    return CredentialBroker(base_session)


# =============================================================================
# botocore Stubber
# =============================================================================


@pytest.fixture
def org_stub(aws_credentials):
    """Stubber가 연결된 실제 Organizations client

    paginator 동작(토큰 이름, 결과 키)은 botocore 서비스 모델을 그대로 따릅니다.

    Returns:
        (client, stubber)
    """
    import boto3
    from botocore.stub import Stubber

    client = boto3.client("organizations", region_name="us-east-1")
    with Stubber(client) as stubber:
        yield client, stubber


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials():
    """moto 사용 시 AWS 자격 증명 설정"""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def moto_session(aws_credentials):
    """moto mock_aws 안의 실제 boto3 Session"""
    moto = pytest.importorskip("moto")
    import boto3

    with moto.mock_aws():
        yield boto3.Session(region_name="us-east-1")


@pytest.fixture
def moto_org(moto_session):
    """계정 2개(이름 dev, prod)가 있는 moto 조직

    Returns:
        (session, {이름: 계정 ID})
    """
    org = moto_session.client("organizations", region_name="us-east-1")
    org.create_organization(FeatureSet="ALL")

    ids: dict[str, str] = {}
    for name in ("dev", "prod"):
        status = org.create_account(Email=f"{name}@example.com", AccountName=name)["CreateAccountStatus"]
        ids[name] = status["AccountId"]

    yield moto_session, ids
