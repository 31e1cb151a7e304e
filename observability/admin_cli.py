"""Lightweight CLI helpers for inspecting interview sessions."""
from __future__ import annotations

import argparse
from typing import Optional

from storage.transcripts import TranscriptStore


def print_sessions(template_id: str, db_path: Optional[str] = None) -> None:
    store = TranscriptStore(db_path)
    for session in store.list_sessions(template_id):
        print(
            f"[{session.started_at}] {session.session_id} status={session.status}"
            f" question={session.current_question} completed_at={session.completed_at or '-'}"
        )


def print_transcript(session_id: str, db_path: Optional[str] = None) -> None:
    store = TranscriptStore(db_path)
    session = store.get_session(session_id)
    print(f"session={session.session_id} status={session.status} question={session.current_question}")
    for turn in store.list_turns(session_id):
        speaker = "Interviewer" if turn.role == "asker" else "Respondent"
        print(f"#{turn.sequence} Q{turn.question_number} {speaker}: {turn.content}")
    summary = store.get_summary(session_id)
    if summary is None:
        print("(no summary)")
        return
    print(f"Summary: {summary.summary}")
    for insight in summary.key_insights:
        print(f"- {insight}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", help="SQLite database path (defaults to settings.DB_PATH)")
    parser.add_argument("--sessions", metavar="TEMPLATE_ID", help="List the sessions of a template")
    parser.add_argument("--transcript", metavar="SESSION_ID", help="Print a session transcript and summary")
    args = parser.parse_args(argv)

    if args.sessions:
        print_sessions(args.sessions, args.db)
    if args.transcript:
        print_transcript(args.transcript, args.db)


if __name__ == "__main__":
    main()
