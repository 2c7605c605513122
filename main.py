#!/usr/bin/env python3
"""
StudentGate -- command-line tools for student emails, passwords and accounts.

The email and password commands run the same pure validation the signup and
login forms use, without starting the web server or touching the database.
The disable and enable commands are the operator hook for account status:
a disabled account cannot sign in, and its existing sessions stop being
honoured on the next request.

Usage:
  python main.py email alice@uni.edu
  python main.py email alice@uni.edu.bd bob@gmail.com
  python main.py password 'Abcdef1!'
  python main.py password 'abcdef12' --json
  python main.py disable alice@uni.edu
  python main.py enable alice@uni.edu --database-url sqlite:///./studentgate.db

Exit status is 0 when every argument passes (or every account was found),
1 otherwise.

To serve the web UI and API:
  uvicorn asgi:app --reload
"""

import argparse
import json
from dataclasses import asdict
from typing import Optional

from auth.client import normalize_email
from auth.store import AccountStore, make_engine
from auth.validation import EMAIL_HINT, check_password_strength, is_valid_student_email
from core.config import get_settings

_RULE_LABELS = {
    "length": "at least 8 characters",
    "lower": "a lowercase letter",
    "upper": "an uppercase letter",
    "number": "a digit",
    "special": "a special character",
}


def _check_emails(emails: list[str], as_json: bool) -> bool:
    results = [(e, is_valid_student_email(e)) for e in emails]
    if as_json:
        payload = [{"email": email, "valid": ok} for email, ok in results]
        print(json.dumps(payload, indent=2))
    else:
        for email, ok in results:
            print(f"  {'[ok]' if ok else '[!] '} {email}{'' if ok else f'  ({EMAIL_HINT})'}")
    return all(ok for _, ok in results)


def _check_passwords(passwords: list[str], as_json: bool) -> bool:
    reports = [check_password_strength(p) for p in passwords]
    if as_json:
        payload = [{**asdict(r), "strong": r.is_strong} for r in reports]
        print(json.dumps(payload, indent=2))
    else:
        for i, report in enumerate(reports, start=1):
            if report.is_strong:
                print(f"  [ok] password #{i} is strong")
                continue
            missing = ", ".join(_RULE_LABELS[name] for name in report.failing())
            print(f"  [!]  password #{i} needs {missing}")
    return all(r.is_strong for r in reports)


def _set_active(emails: list[str], active: bool, database_url: Optional[str]) -> bool:
    engine = make_engine(database_url or get_settings().database_url)
    try:
        store = AccountStore(engine)
        found_all = True
        for email in emails:
            account = store.get_by_email(normalize_email(email))
            if account is None:
                print(f"  [!]  {email}: no such account")
                found_all = False
                continue
            store.set_active(account.uid, active)
            print(f"  [ok] {account.email} {'enabled' if active else 'disabled'}")
        return found_all
    finally:
        engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studentgate",
        description="Check student emails and password strength, or enable/disable accounts.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    database = argparse.ArgumentParser(add_help=False)
    database.add_argument("--database-url", default=None, help="Override DATABASE_URL from the environment")
    sub = parser.add_subparsers(dest="command", required=True)
    email = sub.add_parser("email", parents=[common], help="Check that addresses use a .edu domain")
    email.add_argument("values", nargs="+", metavar="EMAIL")
    password = sub.add_parser("password", parents=[common], help="Score passwords against the signup rules")
    password.add_argument("values", nargs="+", metavar="PASSWORD")
    disable = sub.add_parser("disable", parents=[database], help="Block sign-in and end sessions for accounts")
    disable.add_argument("values", nargs="+", metavar="EMAIL")
    enable = sub.add_parser("enable", parents=[database], help="Re-activate disabled accounts")
    enable.add_argument("values", nargs="+", metavar="EMAIL")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "email":
        ok = _check_emails(args.values, args.json)
    elif args.command == "password":
        ok = _check_passwords(args.values, args.json)
    else:
        ok = _set_active(args.values, args.command == "enable", args.database_url)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
