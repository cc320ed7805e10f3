from unittest.mock import patch

from arbitrage_finder import cli
from arbitrage_finder.pipeline import PipelineResult


def test_cli_prints_envelope(capsys):
    envelope = {"success": True, "data": {}, "metadata": {"model": "grok-4"}}
    with patch("arbitrage_finder.cli.find_arbitrage", return_value=PipelineResult(200, envelope)) as mock_find:
        code = cli.main(["https://kalshi.com/events/kxfed-26mar", "--model", "grok-4"])

    assert code == 0
    mock_find.assert_called_once_with({"url": "https://kalshi.com/events/kxfed-26mar", "model": "grok-4"})
    assert '"success": true' in capsys.readouterr().out


def test_cli_failure_exit_code():
    envelope = {"success": False, "error": "nope", "metadata": {}}
    with patch("arbitrage_finder.cli.find_arbitrage", return_value=PipelineResult(400, envelope)):
        assert cli.main(["https://example.com/x"]) == 1


def test_cli_serve():
    with patch("arbitrage_finder.cli.uvicorn.run") as mock_run:
        assert cli.main(["--serve", "--port", "9000"]) == 0
    mock_run.assert_called_once_with("arbitrage_finder.api_server:app", host="127.0.0.1", port=9000)
