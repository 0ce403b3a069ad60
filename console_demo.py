"""
Offline console demo: chat with a sample document and book an appointment
without any API keys.

Runs the real dialogue manager, document store and chat service against an
in-memory SQLite database. Answers come from the context-echo generator,
which replies with the best-matching passage instead of calling a model.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario check --language hi
"""

import argparse
import asyncio
import uuid

from docbot.config import settings
from docbot.generation.answer_generator import ContextEchoGenerator
from docbot.schemas.conversation_schema import DialogueAction
from docbot.services.container import build_container

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_BOT_NAME = "Northwind Software Studio"

SAMPLE_DOCUMENT = """
Northwind Software Studio builds custom web platforms, mobile apps and AI
prototypes for small and mid-sized businesses. Our team of twenty engineers
works from Bengaluru and serves clients across India and Europe.

Services. We offer custom software development, MVP and AI prototype
development, enterprise CMS implementations, dedicated development teams on a
monthly retainer, and bug fixing and support contracts with a guaranteed
response time of one business day.

Process. Every project starts with a free thirty-minute project discussion.
A typical MVP takes six to ten weeks from kickoff to launch. Larger platform
projects are delivered in two-week sprints with a demo at the end of each
sprint.

Pricing. Small projects start at INR 1.5 lakh. Dedicated developers are billed
monthly. A detailed estimate is shared within three working days of the
project discussion.

Office hours are Monday to Saturday, 10am to 7pm IST.
"""


class ConsoleSession:
    """Plays a chat conversation with one demo bot in the terminal."""

    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "hi",
            "book appointment",
            "Ravi Kumar",
            "98765 43210",
            "tomorrow",
            "3pm",
            "yes",
        ],
        "check": [
            "book appointment",
            "Asha Verma",
            "9123456780",
            "28",
            "11am",
            "yes",
            "check my booking",
            "9123456780",
            "change the time to 5pm",
            "cancel my booking",
            "9123456780",
        ],
        "question": [
            "What services do you offer?",
            "How long does a typical MVP take?",
            "contact",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, language: str = settings.dialogue.default_language) -> None:
        self.services = build_container(
            settings, generator=ContextEchoGenerator(), database_url="sqlite://"
        )
        self.language = language
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"
        self.bot_id = self.services.tenants.create_tenant(DEMO_BOT_NAME, "https://example.com")
        indexed = self.services.documents.replace_documents(
            self.bot_id, SAMPLE_DOCUMENT, "northwind.txt"
        )
        self._indexed_chunks = indexed.chunk_count

    def bot_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{DEMO_BOT_NAME}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  DOCBOT - {title}{RESET}")
        print(f"{BOLD}  Bot: {DEMO_BOT_NAME} ({self._indexed_chunks} chunks indexed){RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Visitor] {RESET}{step}")
            self._process_input(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        self._print_bookings()
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")

        while True:
            user_input = input(f"\n{BLUE}[Visitor] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                self._print_bookings()
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.bot_say("That was quite long. Could you keep it brief?")
                continue
            self._process_input(user_input)

    def _process_input(self, text: str) -> None:
        result = asyncio.run(
            self.services.chat.handle_turn(
                self.bot_id, self.session_id, text, self.language, bot_name=DEMO_BOT_NAME
            )
        )
        colour = RED if result.action == DialogueAction.ERROR else GREEN
        print(f"{colour}{BOLD}[{DEMO_BOT_NAME}]{RESET} {colour}{result.reply}{RESET}")

        session = self.services.sessions.get(self.bot_id, self.session_id)
        self.system_log(f"Action: {result.action.value} | State: {session.state.value}")
        for hit in result.sources[:3]:
            self.system_log(f"Source {hit.source_file} (score {hit.score:.3f})")

    def _print_bookings(self) -> None:
        bookings = self.services.bookings.list_bookings(self.bot_id)
        if not bookings:
            print(f"{DIM}  No bookings.{RESET}")
            return
        for b in bookings:
            print(
                f"{YELLOW}  {b.id[:8]} {b.full_name} {b.phone} "
                f"{b.preferred_date} {b.preferred_time} [{b.status.value}]{RESET}"
            )


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--language",
        choices=["en", "hi"],
        default=settings.dialogue.default_language,
        help="Reply language",
    )
    args = parser.parse_args()

    session = ConsoleSession(language=args.language)
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
