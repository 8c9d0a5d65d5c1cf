"""
tests/parallel/test_client_factory.py - org_inventory/parallel/client.py 테스트
"""

from unittest.mock import MagicMock

from botocore.config import Config

from org_inventory.parallel.client import DEFAULT_MAX_ATTEMPTS, ClientOptions, get_client, global_client


class TestGetClient:
    """get_client 테스트"""

    def test_default_config(self):
        session = MagicMock()

        get_client(session, "ec2", region_name="ap-northeast-2")

        args, kwargs = session.client.call_args
        assert args == ("ec2",)
        assert kwargs["region_name"] == "ap-northeast-2"
        config = kwargs["config"]
        assert isinstance(config, Config)
        assert config.retries == {"max_attempts": DEFAULT_MAX_ATTEMPTS, "mode": "adaptive"}
        assert config.connect_timeout == 10
        assert config.read_timeout == 30

    def test_custom_timeouts(self):
        session = MagicMock()

        get_client(session, "iam", connect_timeout=3, read_timeout=7, retry_mode="standard", max_attempts=2)

        config = session.client.call_args.kwargs["config"]
        assert config.connect_timeout == 3
        assert config.read_timeout == 7
        assert config.retries == {"max_attempts": 2, "mode": "standard"}

    def test_merges_existing_config(self):
        session = MagicMock()

        get_client(session, "s3", config=Config(signature_version="s3v4"))

        config = session.client.call_args.kwargs["config"]
        assert config.signature_version == "s3v4"
        assert config.retries["mode"] == "adaptive"

    def test_returns_session_client(self):
        session = MagicMock()
        assert get_client(session, "sts") is session.client.return_value


class TestGlobalClient:
    """global_client 테스트"""

    def test_pins_global_region(self):
        session = MagicMock()

        global_client(session, "organizations")

        args, kwargs = session.client.call_args
        assert args == ("organizations",)
        assert kwargs["region_name"] == "us-east-1"

    def test_options_from_settings(self):
        options = ClientOptions.from_settings()

        assert options.max_attempts == DEFAULT_MAX_ATTEMPTS
        assert options.max_pool_connections >= 25
        assert options.to_config().retries["mode"] == "adaptive"
