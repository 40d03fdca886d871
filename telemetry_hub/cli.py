"""
Telemetry Hub - Operator CLI

Submits commands to a running hub and downloads collected logs.

Usage:
    hubctl command set_log_level --node-id 21 --param log_level=DEBUG
    hubctl set-interval --window-start 08:00 --window-end 20:00 --active 60 --inactive 300
    hubctl download --last-id 0 --follow
    hubctl status
"""

import argparse
import json
import os
import sys
import time
from typing import Any, Dict, List, Optional

import httpx

DEFAULT_URL = "http://127.0.0.1:3000"
REQUEST_TIMEOUT = 30.0


class HubClientError(Exception):
    """The hub answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class HubClient:
    """Thin HTTP client for the operator and collector endpoints."""

    def __init__(self, base_url: str, api_key: str, transport: Optional[httpx.BaseTransport] = None):
        self.client = httpx.Client(
            base_url=base_url,
            headers={"X-Api-Key": api_key},
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def submit_command(self, command: str, parameters: Optional[Dict[str, Any]] = None) -> str:
        body: Dict[str, Any] = {"command": command}
        if parameters is not None:
            body["parameters"] = parameters
        response = self.client.post("/command", json=body)
        self._check(response)
        return response.text

    def status(self) -> Dict[str, Any]:
        response = self.client.get("/status")
        self._check(response)
        return response.json()

    def download(self, last_id: int) -> List[Dict[str, Any]]:
        response = self.client.get("/download", params={"last_log_message_id": last_id})
        self._check(response)
        return response.json()["logs"]

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if not response.is_success:
            raise HubClientError(response.status_code, response.text)


def parse_param(raw: str) -> tuple:
    """Split ``key=value``; the value is decoded as JSON when it parses."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hubctl", description="Telemetry Hub operator tool")
    parser.add_argument("--url", default=os.getenv("HUB_URL", DEFAULT_URL), help="Hub base URL")
    parser.add_argument("--api-key", default=None, help="API key (defaults from the environment)")
    sub = parser.add_subparsers(dest="action", required=True)

    cmd = sub.add_parser("command", help="Submit a command")
    cmd.add_argument("name")
    cmd.add_argument("--node-id", type=int, default=None, help="Target node; omit to broadcast")
    cmd.add_argument("--param", type=parse_param, action="append", default=[], metavar="KEY=VALUE")

    interval = sub.add_parser("set-interval", help="Set the upload schedule")
    interval.add_argument("--window-start", required=True, help="HH:MM (UTC)")
    interval.add_argument("--window-end", required=True, help="HH:MM (UTC)")
    interval.add_argument("--active", type=int, required=True, help="Seconds inside the window")
    interval.add_argument("--inactive", type=int, required=True, help="Seconds outside the window")
    interval.add_argument("--node-id", type=int, default=None)

    sub.add_parser("status", help="Show queue depth and retention state")

    download = sub.add_parser("download", help="Download collected logs")
    download.add_argument("--last-id", type=int, default=0)
    download.add_argument("--follow", action="store_true", help="Keep polling for new logs")
    download.add_argument("--poll-seconds", type=float, default=10.0)

    return parser


def _api_key(args: argparse.Namespace) -> str:
    if args.api_key:
        return args.api_key
    env = "LOG_COLLECTOR_API_KEY" if args.action == "download" else "CLI_API_KEY"
    return os.getenv(env, "")


def _command_parameters(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    if args.action == "set-interval":
        params: Dict[str, Any] = {
            "window_start": args.window_start,
            "window_end": args.window_end,
            "active_period": args.active,
            "inactive_period": args.inactive,
        }
    else:
        params = dict(args.param)
    if args.node_id is not None:
        params["node_id"] = args.node_id
    return params or None


def run_download(client: HubClient, last_id: int, follow: bool, poll_seconds: float) -> int:
    while True:
        logs = client.download(last_id)
        for log in logs:
            print(json.dumps(log))
            last_id = max(last_id, log["item_id"])
        if not follow:
            return last_id
        time.sleep(poll_seconds)


def main(argv: Optional[List[str]] = None, transport: Optional[httpx.BaseTransport] = None) -> int:
    args = build_parser().parse_args(argv)
    client = HubClient(args.url, _api_key(args), transport=transport)
    try:
        if args.action == "download":
            run_download(client, args.last_id, args.follow, args.poll_seconds)
        elif args.action == "status":
            print(json.dumps(client.status(), indent=2))
        else:
            name = "set_update_interval" if args.action == "set-interval" else args.name
            print(client.submit_command(name, _command_parameters(args)))
    except HubClientError as e:
        print(e.body, file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
