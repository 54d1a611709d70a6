"""Top-level INFLUENCIA reminders command line interface."""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from influencia.adapters.session import SessionManager, teardown_profiles
from influencia.config import DispatchConfig, load_config
from influencia.domain.errors import NavigationTimeout, SessionAcquisitionError
from influencia.domain.models import AuthenticationRequired, DispatchRequest, NotificationKind, Sent
from influencia.jobs.session_check import STATUS_LOGGED_IN, STATUS_NEEDS_SCAN, check_login, write_credential_image
from influencia.orchestration.dispatch import DispatchEngine, SessionSource
from influencia.orchestration.retry import MAX_RETRY_ATTEMPTS, dispatch_with_retry
from influencia.reporting.response import build_response
from influencia.stores.registrants import JsonRegistrantStore
from influencia.utils.cancellation import CancelToken

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NEEDS_SCAN = 2

KIND_CHOICES = tuple(kind.value for kind in NotificationKind)


def build_sessions(config: DispatchConfig) -> SessionSource:
    return SessionManager(config)


def build_engine(config: DispatchConfig, sessions: SessionSource) -> DispatchEngine:
    return DispatchEngine(
        store=JsonRegistrantStore(config.registrants_path),
        sessions=sessions,
        config=config,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="influencia", description="INFLUENCIA WhatsApp reminders CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser("send", help="Send one reminder to a registrant")
    send_parser.add_argument("--registrant-id", required=True, help="Registration id from the registrant store")
    send_parser.add_argument("--type", dest="kind", required=True, choices=KIND_CHOICES, help="Reminder template")
    send_parser.add_argument(
        "--retries",
        type=int,
        default=MAX_RETRY_ATTEMPTS,
        help="Total attempts on transient failures (1 disables retrying)",
    )
    send_parser.add_argument("--timeout-s", type=float, help="Hard deadline for the whole dispatch")
    send_parser.add_argument("--qr-out", type=Path, help="Where to save the QR code if a scan is required")
    send_parser.add_argument("--summary-out", type=Path, help="Optional JSON file with the dispatch response")
    send_parser.set_defaults(handler=_handle_send)

    auth_parser = subparsers.add_parser("auth", help="Authentication/session commands")
    auth_subparsers = auth_parser.add_subparsers(dest="auth_command", required=True)
    wa_parser = auth_subparsers.add_parser(
        "whatsapp",
        help="Check whether the WhatsApp Web profile is linked; save the QR code if not",
    )
    wa_parser.add_argument("--qr-out", type=Path, help="Where to save the QR code")
    wa_parser.set_defaults(handler=_handle_auth_whatsapp)

    return parser


def _default_qr_path(config: DispatchConfig) -> Path:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return config.artifacts_dir / "qr" / f"whatsapp_qr_{stamp}.png"


def _handle_send(args: argparse.Namespace, config: DispatchConfig) -> int:
    engine = build_engine(config, build_sessions(config))
    request = DispatchRequest(registrant_id=args.registrant_id, notification_kind=args.kind)
    cancel = CancelToken(deadline_s=args.timeout_s) if args.timeout_s else None
    outcome = dispatch_with_retry(engine, request, attempts=max(1, args.retries), cancel=cancel)

    response = build_response(outcome)
    body = dict(response.body)
    if isinstance(outcome, AuthenticationRequired):
        qr_path = write_credential_image(outcome.credential_image, args.qr_out or _default_qr_path(config))
        body.pop("qrCodeBase64", None)
        body["qr_path"] = str(qr_path)
        print(f"WhatsApp Web needs to be re-linked. Scan {qr_path} and re-run the same command.")

    summary = {"registrant_id": args.registrant_id, "type": args.kind, "status_code": response.status_code, **body}
    if args.summary_out:
        args.summary_out.parent.mkdir(parents=True, exist_ok=True)
        args.summary_out.write_text(json.dumps(summary, indent=2) + "\n")
    print(json.dumps(summary))

    if isinstance(outcome, Sent):
        return EXIT_OK
    if isinstance(outcome, AuthenticationRequired):
        return EXIT_NEEDS_SCAN
    return EXIT_FAILED


def _handle_auth_whatsapp(args: argparse.Namespace, config: DispatchConfig) -> int:
    try:
        result = check_login(build_sessions(config), config)
    except (SessionAcquisitionError, NavigationTimeout) as exc:
        print(f"Could not reach WhatsApp Web: {exc}")
        return EXIT_FAILED

    if result.status == STATUS_NEEDS_SCAN and result.credential_image is not None:
        qr_path = write_credential_image(result.credential_image, args.qr_out or _default_qr_path(config))
        print(f"WhatsApp Web is not linked. Scan the QR code saved at {qr_path}")
        return EXIT_NEEDS_SCAN
    if result.status == STATUS_LOGGED_IN:
        print("WhatsApp Web is linked")
        return EXIT_OK
    print("WhatsApp Web did not finish loading; try again")
    return EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = load_config()
    try:
        return args.handler(args, config)
    finally:
        teardown_profiles()


if __name__ == "__main__":
    raise SystemExit(main())
