"""Server entry point wiring."""

from unittest.mock import MagicMock

from app.workers import server_cli


def test_main_runs_app_on_requested_address(monkeypatch):
    fake_app = MagicMock()
    monkeypatch.setattr(server_cli, "create_app", lambda: fake_app)

    assert server_cli.main(["--host", "127.0.0.1", "--port", "8080"]) == 0

    fake_app.run.assert_called_once_with(host="127.0.0.1", port=8080, debug=False, use_reloader=False)
