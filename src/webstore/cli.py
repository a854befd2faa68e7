"""Minimal CLI for the webstore API using argparse."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Optional, Sequence, Tuple

DEFAULT_API_URL = "http://localhost:3000"


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from webstore.server.config import settings

    uvicorn.run(
        "webstore.server.app:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )


def _get_api_url(args: argparse.Namespace) -> str:
    api_url = getattr(args, "api_url", None) or os.environ.get("WEBSTORE_API_URL", DEFAULT_API_URL)
    return api_url.rstrip("/")


def _api_request(
    method: str, url: str, json_data: Optional[dict] = None
) -> Tuple[int, Any]:
    """Make an HTTP request to the webstore API.

    Returns (status, body); the body is decoded JSON when the server sent
    JSON, text otherwise. Error statuses print the server's message and exit.
    """
    import urllib.error
    import urllib.request

    headers = {"Content-Type": "application/json"}
    data = None
    if json_data is not None:
        data = json.dumps(json_data).encode()

    req = urllib.request.Request(url, data=data, headers=headers, method=method)
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.status, _decode(resp.read().decode(), resp.headers.get("content-type", ""))
    except urllib.error.HTTPError as e:
        body = _decode(e.read().decode(), e.headers.get("content-type", ""))
        detail = body.get("error", body) if isinstance(body, dict) else body
        print(f"Error {e.code}: {detail}", file=sys.stderr)
        sys.exit(1)
    except urllib.error.URLError as e:
        print(f"Error: cannot reach {url}: {e.reason}", file=sys.stderr)
        sys.exit(1)


def _decode(body: str, content_type: str) -> Any:
    if "application/json" in content_type:
        return json.loads(body)
    return body


def cmd_lessons(args: argparse.Namespace) -> None:
    _, lessons = _api_request("GET", f"{_get_api_url(args)}/lessons")
    if args.json:
        print(json.dumps(lessons, indent=2, ensure_ascii=False))
        return
    if not lessons:
        print("No lessons.")
        return
    print(f"{'ID':<26} {'Name':<30} {'Location':<20} {'Price':>8} {'Left':>5}")
    print("-" * 93)
    for l in lessons:
        print(
            f"{l['_id']:<26} {str(l.get('name'))[:30]:<30} {str(l.get('location'))[:20]:<20} "
            f"{l.get('price', 0):>8} {l.get('availableInventory', 0):>5}"
        )


def cmd_order(args: argparse.Namespace) -> None:
    payload = {
        "lessonId": args.lesson_id,
        "quantity": args.quantity,
        "customerName": args.name,
        "customerEmail": args.email,
    }
    _, message = _api_request("POST", f"{_get_api_url(args)}/orders", payload)
    print(message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webstore",
        description="Webstore lessons and orders API",
    )
    sub = parser.add_subparsers(dest="command")

    # serve
    p = sub.add_parser("serve", help="Run the API server")
    p.add_argument("--host", default=None, help="Bind address (or HOST)")
    p.add_argument("--port", type=int, default=None, help="Listen port (or PORT)")

    # lessons
    p = sub.add_parser("lessons", help="List lessons on a running server")
    p.add_argument("--api-url", default=None, help="API URL (or WEBSTORE_API_URL)")
    p.add_argument("--json", action="store_true", help="Print raw JSON")

    # order
    p = sub.add_parser("order", help="Place an order on a running server")
    p.add_argument("lesson_id", help="Lesson ID")
    p.add_argument("quantity", type=int, help="Number of places")
    p.add_argument("--name", required=True, help="Customer name")
    p.add_argument("--email", required=True, help="Customer email")
    p.add_argument("--api-url", default=None, help="API URL (or WEBSTORE_API_URL)")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    handlers = {
        "serve": cmd_serve,
        "lessons": cmd_lessons,
        "order": cmd_order,
    }
    handlers[args.command](args)


if __name__ == "__main__":
    main()
