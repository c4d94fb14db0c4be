#!/usr/bin/env python3
"""
사용자 관리 CLI

사용법:
    python manage_users.py create-admin [--email EMAIL] [--name NAME] [--password PASSWORD]
    python manage_users.py set-password (--email EMAIL | --id ID) [--password PASSWORD]

옵션을 생략하면 대화형으로 입력받습니다.
성공 시 0, 실패 시 1을 반환합니다.
"""

import argparse
import getpass
import sys

from app.database import SessionLocal
from app.services.user_service import UserService, normalize_email, validate_password

EXIT_OK = 0
EXIT_FAILURE = 1


def _prompt(value: str | None, label: str, secret: bool = False) -> str:
    if value:
        return value
    if secret:
        return getpass.getpass(f"{label}: ")
    return input(f"{label}: ").strip()


def _prompt_password(value: str | None) -> str:
    if value:
        return value
    password = getpass.getpass("Password: ")
    confirmation = getpass.getpass("Confirm password: ")
    if password != confirmation:
        raise ValueError("Passwords do not match")
    return password


def create_admin(args: argparse.Namespace, session_factory=SessionLocal) -> int:
    """관리자 생성 (이미 있는 이메일이면 관리자로 승격)"""
    try:
        email = normalize_email(_prompt(args.email, "Email"))
        name = _prompt(args.name, "Name") or "Administrator"
        password = _prompt_password(args.password)
        validate_password(password)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE

    db = session_factory()
    try:
        user, created = UserService(db).create_or_promote_admin(name, email, password)
        if created:
            print(f"✅ 관리자 계정이 생성되었습니다: {user.email} (id={user.id})")
        else:
            print(f"✅ 기존 사용자를 관리자로 변경했습니다: {user.email} (id={user.id})")
    except Exception as e:
        print(f"❌ 관리자 생성 실패: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        db.close()

    return EXIT_OK


def set_password(args: argparse.Namespace, session_factory=SessionLocal) -> int:
    """이메일 또는 ID로 사용자를 찾아 비밀번호 변경"""
    db = session_factory()
    try:
        service = UserService(db)
        if args.id is not None:
            user = service.get_user_by_id(args.id)
        else:
            user = service.get_user_by_email(args.email)

        if user is None:
            print("❌ 사용자를 찾을 수 없습니다.", file=sys.stderr)
            return EXIT_FAILURE

        try:
            password = _prompt_password(args.password)
            service.set_password(user, password)
        except ValueError as e:
            print(f"❌ {e}", file=sys.stderr)
            return EXIT_FAILURE

        print(f"✅ 비밀번호가 변경되었습니다: {user.email} (id={user.id})")
        return EXIT_OK
    finally:
        db.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Trip Map 사용자 관리")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-admin", help="관리자 계정 생성")
    create.add_argument("--email")
    create.add_argument("--name")
    create.add_argument("--password")
    create.set_defaults(handler=create_admin)

    reset = subparsers.add_parser("set-password", help="사용자 비밀번호 변경")
    target = reset.add_mutually_exclusive_group(required=True)
    target.add_argument("--email")
    target.add_argument("--id", type=int)
    reset.add_argument("--password")
    reset.set_defaults(handler=set_password)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
