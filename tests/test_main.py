"""Tests for the application entry point."""

import logging
from unittest.mock import patch

import pytest

from kitbridge.main import check_config, main

from conftest import make_config


class TestMain:
    """Test boot sequence and logging setup."""

    @patch("kitbridge.main.serve")
    @patch("kitbridge.main.logging.basicConfig")
    @patch("kitbridge.main.get_config")
    def test_logging_configured_once_from_config(self, mock_get_config, mock_basic, mock_serve):
        mock_get_config.return_value = make_config(log_level="DEBUG")

        main()

        mock_basic.assert_called_once()
        assert mock_basic.call_args.kwargs["level"] == "DEBUG"
        mock_serve.assert_called_once_with()

    @patch("kitbridge.main.serve")
    @patch("kitbridge.main.logging.basicConfig")
    @patch("kitbridge.main.get_config")
    def test_invalid_config_exits(self, mock_get_config, mock_basic, mock_serve):
        mock_get_config.side_effect = ValueError("bad env")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        mock_serve.assert_not_called()

    @patch("kitbridge.main.serve")
    @patch("kitbridge.main.logging.basicConfig")
    @patch("kitbridge.main.get_config")
    def test_server_crash_exits(self, mock_get_config, mock_basic, mock_serve):
        mock_get_config.return_value = make_config()
        mock_serve.side_effect = RuntimeError("port in use")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1

    def test_missing_settings_reported(self, caplog):
        config = make_config(kit_tag_id="", stripe_price_id="")

        with caplog.at_level(logging.WARNING, logger="kitbridge.main"):
            check_config(config)

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("create-checkout-session is missing") for m in messages)
        assert any(m.startswith("stripe-webhook is missing") for m in messages)
        assert not any(m.startswith("verify-checkout-session") for m in messages)
