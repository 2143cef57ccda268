"""Response maintenance CLI: ``survey-cleanup``.

Standalone command that connects to the database to inspect or clear
stored survey responses.  Intended for one-off maintenance between survey
runs.

Examples::

    # List the 50 most recent responses
    survey-cleanup list

    # List responses of one deployment
    survey-cleanup list --deployment prod-2026 --limit 200

    # Delete ALL responses and their answers
    survey-cleanup clear --yes
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

logger = logging.getLogger(__name__)


async def list_responses(
    *,
    deployment_id: str | None = None,
    limit: int = 50,
) -> list[dict]:
    """Return summaries of the most recent responses."""
    # Lazy imports to avoid loading DB machinery at module import time
    from survey_db.engine import dispose_engine, get_session_factory
    from survey_db.repository import ResponseRepository

    repo = ResponseRepository()
    factory = get_session_factory()

    try:
        async with factory() as db:
            rows = await repo.list_responses(db, deployment_id=deployment_id, limit=limit)
            return [
                {
                    "session_id": r.session_id,
                    "respondent_name": r.respondent_name,
                    "answer_count": r.answer_count,
                    "last_block_id": r.last_block_id,
                    "created_at": r.created_at,
                    "completed_at": r.completed_at,
                }
                for r in rows
            ]
    finally:
        await dispose_engine()


async def clear_responses() -> int:
    """Delete every response (answers cascade) and return the count."""
    from survey_db.engine import dispose_engine, get_session_factory
    from survey_db.repository import ResponseRepository

    repo = ResponseRepository()
    factory = get_session_factory()

    try:
        async with factory() as db:
            deleted = await repo.delete_all_responses(db)
            await db.commit()
        logger.info("Cleanup complete: action=clear, deleted_rows=%d", deleted)
        return deleted
    finally:
        await dispose_engine()


def _format_row(row: dict) -> str:
    status = "completed" if row["completed_at"] else "open"
    created = row["created_at"].isoformat(timespec="seconds") if row["created_at"] else "-"
    return (
        f"{row['session_id']}  {created}  {status:<9}  "
        f"answers={row['answer_count']:<3} last={row['last_block_id'] or '-'}  "
        f"{row['respondent_name'] or ''}"
    )


def cli() -> None:
    """Console-script entry point: ``survey-cleanup``."""
    parser = argparse.ArgumentParser(
        prog="survey-cleanup",
        description="Inspect or clear stored survey responses.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List the most recent responses")
    list_parser.add_argument("--deployment", default=None, help="Only this deployment id")
    list_parser.add_argument("--limit", type=int, default=50, help="Maximum rows (default: 50)")

    clear_parser = sub.add_parser("clear", help="Delete ALL responses and answers")
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        default=False,
        help="Confirm deletion (required)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.command == "list":
        rows = asyncio.run(list_responses(deployment_id=args.deployment, limit=args.limit))
        for row in rows:
            print(_format_row(row))
        print(f"{len(rows)} response(s)", file=sys.stderr)
        return

    if not args.yes:
        print("Refusing to delete without --yes", file=sys.stderr)
        sys.exit(2)
    deleted = asyncio.run(clear_responses())
    print(f"Deleted {deleted} response(s)", file=sys.stderr)


if __name__ == "__main__":
    cli()
