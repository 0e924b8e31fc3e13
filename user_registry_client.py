"""User registry API client.

A thin wrapper around the ``/user/*`` endpoints using the ``requests``
library.  Every method returns a tuple ``(data, error)``: on success
``error`` is ``None``; on failure ``data`` is ``None`` (or empty) and
``error`` is a dictionary with keys ``status_code`` and ``message``.

The module doubles as a command line tool::

    python user_registry_client.py add --username alice --age 30 \\
        --email a@x.com --phone 555
    python user_registry_client.py get <uuid>
    python user_registry_client.py list
    python user_registry_client.py update <uuid> --username alice2 ...
    python user_registry_client.py delete <uuid>

The base URL defaults to ``http://localhost:8080`` and can be changed
with ``--base-url`` or the ``USER_REGISTRY_URL`` environment variable.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"

Error = Dict[str, Any]


class UserRegistryClient:
    """Client for the user registry API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``http://localhost:8080``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Seconds to wait for each response.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, ``DELETE``).
            path: Path relative to :attr:`base_url` (e.g. ``/user/list``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)``.  ``data`` is the parsed JSON body,
            or ``None`` when the response is empty.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    body = exc.response.json()
                    detail = body.get("detail") if isinstance(body, dict) else body
                    if detail is not None:
                        message = detail if isinstance(detail, str) else json.dumps(detail)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def add_user(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Create a user; the returned record carries the assigned ``uuid``."""
        return self._request("POST", "/user/add", json_body=payload)

    def get_user(self, uid: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Fetch one user by external identifier."""
        return self._request("GET", "/user/get", params={"id": uid})

    def list_users(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve all users.

        Returns:
            A tuple ``(users, error)``.  ``users`` is empty on failure.
        """
        data, error = self._request("GET", "/user/list")
        if error:
            return [], error
        return data or [], None

    def update_user(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Replace a user's fields.  ``payload`` must include ``uuid``."""
        return self._request("PUT", "/user/update", json_body=payload)

    def delete_user(self, uid: str) -> Tuple[bool, Optional[Error]]:
        """Delete a user.

        Returns:
            A tuple ``(success, error)``.  Deleting an unknown identifier
            still counts as success.
        """
        _, error = self._request("DELETE", "/user/delete", params={"id": uid})
        if error:
            return False, error
        return True, None


def _add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--username", required=True)
    parser.add_argument("--age", required=True, type=int)
    parser.add_argument("--email", required=True)
    parser.add_argument("--phone", required=True)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Manage users in the user registry API.")
    ap.add_argument(
        "--base-url",
        default=os.getenv("USER_REGISTRY_URL", DEFAULT_BASE_URL),
        help=f"Service URL (default: {DEFAULT_BASE_URL})",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log HTTP requests")
    sub = ap.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Create a user")
    _add_profile_arguments(add)

    get = sub.add_parser("get", help="Show one user")
    get.add_argument("uuid")

    sub.add_parser("list", help="List all users")

    update = sub.add_parser("update", help="Replace a user's fields")
    update.add_argument("uuid")
    _add_profile_arguments(update)

    delete = sub.add_parser("delete", help="Delete a user")
    delete.add_argument("uuid")
    return ap


def main(argv: Optional[List[str]] = None, client: Optional[UserRegistryClient] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    client = client or UserRegistryClient(base_url=args.base_url)

    if args.command in ("add", "update"):
        payload = {
            "username": args.username,
            "age": args.age,
            "email": args.email,
            "phone": args.phone,
        }
        if args.command == "add":
            data, error = client.add_user(payload)
        else:
            payload["uuid"] = args.uuid
            data, error = client.update_user(payload)
    elif args.command == "get":
        data, error = client.get_user(args.uuid)
    elif args.command == "list":
        data, error = client.list_users()
    else:
        _, error = client.delete_user(args.uuid)
        data = None

    if error:
        print(f"[!] {error['message']}", file=sys.stderr)
        return 1
    if data is not None:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
