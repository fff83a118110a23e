from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Callable

from flashdeck.core.errors import FlashdeckError, InvalidInput
from flashdeck.modules.generation.generator import FlashcardGenerator
from flashdeck.modules.learning.engine import LearningSession
from flashdeck.modules.validation import validate_topic


def _load_topic(args: argparse.Namespace) -> str:
    if args.topic and args.topic_file:
        raise SystemExit("Provide either --topic or --topic-file, not both")
    if args.topic_file:
        return Path(args.topic_file).read_text(encoding="utf-8")
    if args.topic:
        return args.topic
    raise SystemExit("--topic or --topic-file is required")


CARD_FILE_ERROR = "Card file must be a JSON list of {\"front\": ..., \"back\": ...} objects"


def _load_cards(path: str) -> list[dict]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidInput(f"Cannot read card file: {e.strerror or e}") from None
    except ValueError:
        raise InvalidInput(CARD_FILE_ERROR) from None
    # Accept both a bare list and the generation response shape
    if isinstance(data, dict):
        data = data.get("flashcards", [])
    try:
        return [
            {"id": i, "front": str(c["front"]), "back": str(c["back"])}
            for i, c in enumerate(data)
        ]
    except (KeyError, TypeError):
        raise InvalidInput(CARD_FILE_ERROR) from None


def run_study(
    session: LearningSession,
    ask: Callable[[str], str] = input,
    say: Callable[[str], None] = print,
) -> LearningSession:
    """Drive a session from the terminal until it finishes or the user quits."""
    while not session.is_finished:
        card = session.current_card
        say(f"\nCard {session.index + 1} of {session.total}")
        say(f"Q: {card.front}")
        ask("[enter] to flip ")
        session.flip()
        say(f"A: {card.back}")
        answer = ask("Did you know it? [y/n/q] ").strip().lower()
        if answer == "q":
            break
        if answer == "y":
            session.mark_known()
        else:
            session.mark_unknown()

    result = session.summary()
    say(f"\n{result['known']} known, {result['unknown']} not known")
    pct = result["percentage"]
    say("No cards scored" if pct is None else f"{pct}% answered correctly")
    return session


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashdeck", description="Flashcard generator and study CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate flashcards for a topic")
    g.add_argument("--topic", "-t", help="Topic (2-200 characters)")
    g.add_argument("--topic-file", help="Path to a file containing the topic")

    s = sub.add_parser("study", help="Study cards from a JSON file in the terminal")
    s.add_argument("--file", "-f", required=True, help="JSON list of {front, back}")

    args = parser.parse_args(argv)
    if args.cmd == "generate":
        try:
            topic = validate_topic(_load_topic(args))
            cards = asyncio.run(FlashcardGenerator().request_cards(topic))
        except FlashdeckError as e:
            print(json.dumps({"error": e.message}))
            return 1
        print(json.dumps({"flashcards": [c.model_dump() for c in cards]}, indent=2))
        return 0
    if args.cmd == "study":
        try:
            session = LearningSession(_load_cards(args.file))
        except FlashdeckError as e:
            print(e.message)
            return 1
        run_study(session)
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
