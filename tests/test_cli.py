import json

import httpx
import pytest

from telemetry_hub import cli


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def run(argv, recorder):
    return cli.main(["--url", "http://hub", "--api-key", "k"] + argv, transport=httpx.MockTransport(recorder))


def test_command_posts_parameters(capsys):
    recorder = Recorder(httpx.Response(200, text="OK"))

    code = run(["command", "set_log_level", "--node-id", "21", "--param", "log_level=DEBUG"], recorder)

    assert code == 0
    request = recorder.requests[0]
    assert request.url.path == "/command"
    assert request.headers["X-Api-Key"] == "k"
    assert json.loads(request.content) == {
        "command": "set_log_level",
        "parameters": {"log_level": "DEBUG", "node_id": 21},
    }
    assert capsys.readouterr().out.strip() == "OK"


def test_command_without_parameters_broadcasts():
    recorder = Recorder(httpx.Response(200, text="OK"))
    run(["command", "set_log_level"], recorder)
    assert json.loads(recorder.requests[0].content) == {"command": "set_log_level"}


def test_set_interval_builds_schedule_command():
    recorder = Recorder(httpx.Response(200, text="OK"))

    run(
        ["set-interval", "--window-start", "08:00", "--window-end", "20:00", "--active", "60", "--inactive", "300"],
        recorder,
    )

    assert json.loads(recorder.requests[0].content) == {
        "command": "set_update_interval",
        "parameters": {
            "window_start": "08:00",
            "window_end": "20:00",
            "active_period": 60,
            "inactive_period": 300,
        },
    }


def test_download_prints_logs(capsys):
    logs = [
        {"item_id": 3, "timestamp": "2025-10-24T12:00:00Z", "node_id": 21, "message": "a"},
        {"item_id": 4, "timestamp": "2025-10-24T12:00:05Z", "node_id": 21, "message": "b"},
    ]
    recorder = Recorder(httpx.Response(200, json={"logs": logs}))

    assert run(["download", "--last-id", "2"], recorder) == 0

    assert recorder.requests[0].url.params["last_log_message_id"] == "2"
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line) for line in lines] == logs


def test_error_response_exits_nonzero(capsys):
    recorder = Recorder(httpx.Response(400, text="Unknown command: reboot"))

    assert run(["command", "reboot"], recorder) == 1
    assert "Unknown command" in capsys.readouterr().err


def test_api_key_defaults_per_action(monkeypatch):
    monkeypatch.setenv("CLI_API_KEY", "cli-key")
    monkeypatch.setenv("LOG_COLLECTOR_API_KEY", "collector-key")
    parser = cli.build_parser()

    assert cli._api_key(parser.parse_args(["command", "x"])) == "cli-key"
    assert cli._api_key(parser.parse_args(["download"])) == "collector-key"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("log_level=DEBUG", ("log_level", "DEBUG")),
        ("count=5", ("count", 5)),
        ("flags=[1,2]", ("flags", [1, 2])),
        ("empty=", ("empty", "")),
    ],
)
def test_parse_param(raw, expected):
    assert cli.parse_param(raw) == expected


def test_parse_param_requires_equals():
    with pytest.raises(Exception):
        cli.parse_param("novalue")


def test_status_prints_hub_state(capsys):
    state = {"pending_commands": 3, "known_nodes": [1, 2], "margin_base": 300}
    recorder = Recorder(httpx.Response(200, json=state))

    assert run(["status"], recorder) == 0

    assert recorder.requests[0].url.path == "/status"
    assert json.loads(capsys.readouterr().out) == state
