"""Interactive interview runner for the Anamnesis CLI."""

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Prompt

from anamnesis.config.loader import ConfigLoader
from anamnesis.core.dspy_service import DSPyBootstrapper
from anamnesis.core.errors import ConfigError
from anamnesis.core.types import (
    AlreadyComplete,
    CannotProceed,
    Complete,
    NextQuestion,
    Reprompt,
    Review,
    TurnResult,
)
from anamnesis.observability.logging import setup_logging
from anamnesis.runtime.session import InterviewSession

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("quit", "exit", "q", "/quit", "/exit")
HELP_TEXT = (
    "Commands: [bold]/skip[/] skip the current question, [bold]/summary[/] show a summary, "
    "[bold]/stats[/] conversation statistics, [bold]/reset[/] start over, "
    "[bold]exit[/] leave."
)


@dataclass
class InterviewConfig:
    """Configuration for the interview runner."""

    config_path: Path
    verbose: bool = False
    debug: bool = False


class InterviewRunner:
    """Interactive console interview.

    Encapsulates the setup and execution of one interview session with
    rich console output.
    """

    def __init__(
        self,
        config: InterviewConfig,
        session: InterviewSession | None = None,
        console: Console | None = None,
    ):
        self.config = config
        self.console = console or Console()
        self.session = session
        self._running = False

    def setup(self) -> None:
        """Load config, configure DSPy and create the session.

        Raises:
            ConfigError: If config is invalid
        """
        from dotenv import load_dotenv

        load_dotenv()

        try:
            interview_config = ConfigLoader.load(self.config.config_path)
        except ConfigError as e:
            self.console.print(f"[red]Invalid config: {e}[/]")
            raise

        level = "DEBUG" if self.config.debug else interview_config.settings.logging.level
        setup_logging(level, interview_config.settings.logging.json_file)

        DSPyBootstrapper.bootstrap(interview_config)
        self.session = InterviewSession.from_config(interview_config)
        if self.config.verbose:
            self.console.print(
                f"[dim]Loaded '{interview_config.name}' with {len(interview_config.slots)} slots[/]"
            )

    async def start(self) -> None:
        """Run the interview until completion or exit."""
        if self.session is None:
            self.setup()
        assert self.session is not None

        logger.info(f"Console interview started for session {self.session.session_id}")
        self.console.print(f"Session ID: [green]{self.session.session_id}[/]")
        self.console.print(HELP_TEXT + "\n")
        self._running = True
        self.render(self.session.start_session())

        while self._running:
            try:
                user_input = Prompt.ask("[bold green]You[/]", console=self.console)
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]Goodbye![/]")
                break

            if self._is_exit_command(user_input):
                self.console.print("\n[yellow]Goodbye![/]")
                break
            if not user_input.strip():
                continue

            await self.handle_input(user_input)

    async def handle_input(self, user_input: str) -> TurnResult | None:
        """Run a console command or submit the input as an answer."""
        assert self.session is not None
        command = user_input.strip().lower()

        if command == "/skip":
            result = self.session.skip_slot()
        elif command == "/reset":
            result = self.session.reset_session()
        elif command == "/stats":
            stats = self.session.get_stats()
            self.console.print(
                f"[dim]{stats.total_interactions} interactions, "
                f"{stats.message_count} messages, "
                f"{stats.session_duration_minutes} min[/]"
            )
            return None
        elif command == "/summary":
            with self.console.status("[bold blue]Summarizing...[/]"):
                summary = await self.session.generate_summary()
            self.console.print(Markdown(summary))
            return None
        else:
            with self.console.status("[bold blue]Thinking...[/]"):
                result = await self.session.submit_turn(None, user_input)

        self.render(result)
        return result

    def render(self, result: TurnResult) -> None:
        """Print a turn result."""
        if isinstance(result, NextQuestion):
            self.console.print(f"[bold blue]Interviewer > [/]{result.prompt}\n")
        elif isinstance(result, Reprompt):
            self.console.print(f"[bold blue]Interviewer > [/]{result.message}\n")
            if result.skip_suggested:
                self.console.print("[dim]Having trouble? Type /skip to move on.[/]\n")
        elif isinstance(result, Review):
            self.console.print(Markdown(result.summary))
        elif isinstance(result, Complete):
            self.console.print("[bold green]Interview complete.[/]\n")
            self.console.print(Markdown(result.summary))
            self._running = False
        elif isinstance(result, AlreadyComplete):
            self.console.print(f"[yellow]{result.message}[/]")
            self._running = False
        elif isinstance(result, CannotProceed):
            self.console.print(f"[red]{result.message}[/]")

    def _is_exit_command(self, user_input: str) -> bool:
        """Check if input is an exit command."""
        return user_input.strip().lower() in EXIT_COMMANDS


async def run_interview(config: InterviewConfig) -> None:
    """Convenience function to run an interview."""
    runner = InterviewRunner(config)
    await runner.start()
