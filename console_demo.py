"""
Offline console demo: runs the dashboard metrics engine with no backend.

Seeds an in-memory store, authorizes a session and prints the dashboard
as feed updates, midnight rollovers and failures happen. No network, no
credentials. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario midnight
    python console_demo.py --scenario failure
"""

import argparse
import asyncio
from datetime import datetime, timedelta
from typing import Callable

from src.config import settings
from src.datasource.base import DataSourceError
from src.datasource.memory import InMemoryDataSource
from src.engine.day_window import Clock, seconds_until_midnight
from src.engine.report import format_report
from src.engine.session import SystemValidationEngine

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

SECONDS_BEFORE_MIDNIGHT = 3.0


class ConsoleNotifier:
    """Prints notifications as coloured console toasts."""

    def success(self, message: str, duration_ms: int) -> None:
        print(f"{GREEN}{BOLD}[toast {duration_ms}ms]{RESET} {GREEN}{message}{RESET}")

    def error(self, message: str) -> None:
        print(f"{RED}{BOLD}[toast]{RESET} {RED}{message}{RESET}")


def seed(source: InMemoryDataSource, today: str, tomorrow: str) -> None:
    """Load a small, realistic data set."""
    collections = settings.collections
    source.load(collections.bookings, [
        {"id": "BK-1001", "date": today, "status": "completed", "revenue": 2500},
        {"id": "BK-1002", "date": today, "status": "pending", "price": 1800},
        {"id": "BK-1003", "date": today, "status": "completed", "price": 1200},
        {"id": "BK-1004", "date": tomorrow, "status": "confirmed", "price": 3000},
        {"id": "BK-1005", "date": tomorrow, "status": "completed", "revenue": 900},
    ])
    source.load(collections.conversations, [
        {"id": "CV-1", "unreadCount": 2},
        {"id": "CV-2", "unreadCount": 0},
        {"id": "CV-3", "unreadCount": 4},
    ])
    source.load(collections.clients, [{"id": f"CL-{n}"} for n in range(1, 8)])


class ConsoleDashboard:
    """Drives one scripted scenario against the engine."""

    SCENARIOS = ("live", "midnight", "failure")

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self.clock: Clock = clock
        self.source = InMemoryDataSource()
        self.engine = SystemValidationEngine(self.source, ConsoleNotifier(), clock=self.clock)
        today = self.clock().date()
        self.today = today.isoformat()
        self.tomorrow = (today + timedelta(days=1)).isoformat()
        seed(self.source, self.today, self.tomorrow)

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def step(self, text: str) -> None:
        print(f"\n{BLUE}[Ops] {RESET}{text}")

    def show(self) -> None:
        session = self.engine.session
        current = session.day_window.current_date if session else None
        print(format_report(self.engine.stats, current))

    async def authorize(self) -> bool:
        self.engine.set_authorized(True)
        validated = await self.engine.session.wait_for_validation()
        await self.source.settle()
        return validated

    async def run_live(self) -> None:
        self.step("Admin signs in")
        await self.authorize()
        self.show()

        collections = settings.collections
        self.step("A pending booking is completed")
        self.source.put(collections.bookings, "BK-1002", {
            "date": self.today, "status": "completed", "price": 1800,
        })
        self.step("A customer sends three new messages")
        self.source.put(collections.conversations, "CV-2", {"unreadCount": 3})
        self.step("A new client registers")
        self.source.put(collections.clients, "CL-8", {})
        await self.source.settle()
        self.show()

    async def run_midnight(self) -> None:
        self.step("Admin signs in shortly before midnight")
        await self.authorize()
        self.show()

        wait = seconds_until_midnight(self.clock()) + 0.5
        self.system_log(f"Waiting {wait:.1f}s for the midnight timer")
        await asyncio.sleep(wait)
        await self.source.settle()
        self.show()

    async def run_failure(self) -> None:
        self.step("Admin signs in while the bookings store is unreachable")
        self.source.fail_next_fetch(DataSourceError("bookings store unavailable"))
        validated = await self.authorize()
        self.system_log(f"Validated: {validated}")
        self.show()

        self.step("Admin re-authenticates")
        await self.authorize()
        self.show()

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  OPS DASHBOARD - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  App: {settings.app_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        try:
            await getattr(self, f"run_{scenario}")()
        finally:
            self.engine.close()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def near_midnight_clock(seconds_before: float = SECONDS_BEFORE_MIDNIGHT) -> Clock:
    """A wall clock shifted to run ``seconds_before`` seconds ahead of midnight."""
    now = datetime.now()
    target = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
    offset = target - timedelta(seconds=seconds_before) - now
    return lambda: datetime.now() + offset


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline dashboard demo")
    parser.add_argument(
        "--scenario",
        choices=ConsoleDashboard.SCENARIOS,
        default="live",
        help="Pre-scripted scenario to play",
    )
    args = parser.parse_args()

    clock = near_midnight_clock() if args.scenario == "midnight" else datetime.now
    dashboard = ConsoleDashboard(clock=clock)
    asyncio.run(dashboard.run_scenario(args.scenario))


if __name__ == "__main__":
    main()
