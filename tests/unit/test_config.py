"""
Unit Tests for client configuration and logging setup
"""
import json
import logging

from educonnect.config import ClientConfig, DEFAULT_API_URL, DEFAULT_MOMO_NAME, DEFAULT_MOMO_NUMBER
from educonnect.logging_config import JSONFormatter, get_logger, set_role, set_user_id, setup_logging


class TestClientConfig:

    def test_defaults(self, tmp_path):
        config = ClientConfig(config_dir=str(tmp_path))

        assert config.api_base_url == DEFAULT_API_URL
        assert config.redirect_delay == 1.5
        assert config.storage_file == str(tmp_path / "storage.json")
        assert config.momo_number == DEFAULT_MOMO_NUMBER == "0591586781"
        assert config.momo_name == DEFAULT_MOMO_NAME == "DANIEL MENSAH WILLIAMS"

    def test_momo_account_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EDUCONNECT_MOMO_NUMBER", "0240000000")
        monkeypatch.setenv("EDUCONNECT_MOMO_NAME", "EDUCONNECT LTD")

        config = ClientConfig.load_default(config_dir=str(tmp_path))

        assert config.momo_number == "0240000000"
        assert config.momo_name == "EDUCONNECT LTD"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text(json.dumps({
            "api_base_url": "http://from-file/",
            "timeout": 12,
        }))
        monkeypatch.setenv("EDUCONNECT_API_URL", "http://from-env/")
        monkeypatch.setenv("EDUCONNECT_REDIRECT_DELAY", "0")
        monkeypatch.setenv("EDUCONNECT_JSON_LOGS", "true")

        config = ClientConfig.load_default(config_dir=str(tmp_path))

        assert config.api_base_url == "http://from-env"
        assert config.timeout == 12
        assert config.redirect_delay == 0.0
        assert config.json_logs is True

    def test_config_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EDUCONNECT_CONFIG_DIR", str(tmp_path))
        monkeypatch.delenv("EDUCONNECT_API_URL", raising=False)

        config = ClientConfig.load_default()

        assert config.storage_file == str(tmp_path / "storage.json")

    def test_save_and_load(self, tmp_path):
        config = ClientConfig(config_dir=str(tmp_path), api_base_url="http://saved")
        config.save_to_file()

        loaded = ClientConfig(config_dir=str(tmp_path))
        loaded.load_from_file(str(tmp_path / "config.json"))

        assert loaded.api_base_url == "http://saved"


class TestLogging:

    def test_child_loggers_share_namespace(self):
        logger = get_logger("workflow")

        assert logger.name == "educonnect.workflow"
        assert hasattr(logger, "log_transition")

    def test_json_formatter_includes_session_context(self):
        set_role("student")
        set_user_id("stu-1")
        record = logging.LogRecord("educonnect.api", logging.WARNING, __file__, 1, "boom", None, None)
        record.http_status = 500

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "boom"
        assert data["role"] == "student"
        assert data["user_id"] == "stu-1"
        assert data["http_status"] == 500
        set_role("")
        set_user_id("")

    def test_setup_logging_writes_file(self, tmp_path):
        log_file = tmp_path / "logs" / "educonnect.log"

        logger = setup_logging("DEBUG", str(log_file))
        get_logger("test").info("hello file")
        for handler in logger.handlers:
            handler.flush()

        assert "hello file" in log_file.read_text()
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
