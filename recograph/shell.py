"""Line-oriented command shell over a Recograph client.

Commands (keywords are case-insensitive)::

    load database <path>   echo the file, then replace the graph with it
    add <line>             add one relationship (database line syntax)
    remove <line>          remove one relationship
    nodes                  all nodes on one line, sorted by name
    edges                  all edges, one per line
    recommend <term>       recommended products on one line, sorted by name
    export                 the graph in DOT format
    quit                   stop reading commands

Failures print a single line starting with ``Error, `` and the shell keeps
going.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

import click

from recograph.client import Recograph
from recograph.engine.query import parse_recommend_command
from recograph.errors import CommandError, RecographError

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error, "
QUIT = "quit"


class CommandShell:
    """Executes shell commands against a client and echoes the results.

    Args:
        client: Client to operate on; a fresh empty one if omitted.
        echo: Output function, called once per output line.
    """

    def __init__(
        self,
        client: Recograph | None = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self.client = client or Recograph()
        self._echo = echo
        self._handlers: dict[str, Callable[[str, str], None]] = {
            "load": self._load,
            "add": self._add,
            "remove": self._remove,
            "nodes": self._nodes,
            "edges": self._edges,
            "recommend": self._recommend,
            "export": self._export,
        }

    def execute(self, line: str) -> bool:
        """Run one command line.

        Returns:
            False if the line was ``quit``, True otherwise
        """
        command = line.strip()
        parts = command.split(maxsplit=1)
        keyword = parts[0].lower() if parts else ""
        argument = parts[1] if len(parts) > 1 else ""
        if keyword == QUIT and not argument:
            return False
        try:
            handler = self._handlers.get(keyword)
            if handler is None:
                raise CommandError(f"unknown command: {command!r}")
            handler(command, argument)
        except (RecographError, ValueError, OSError) as exc:
            logger.debug("Command %r failed: %s", command, exc)
            self._error(str(exc))
        return True

    def run(self, lines: Iterable[str]) -> None:
        """Run commands until ``quit`` or the end of input."""
        for line in lines:
            if not self.execute(line.rstrip("\r\n")):
                break

    # --- Handlers ---

    def _load(self, command: str, argument: str) -> None:
        parts = argument.split(maxsplit=1)
        if len(parts) != 2 or parts[0].lower() != "database":
            raise CommandError(f"expected 'load database <path>': {command!r}")
        text = Path(parts[1]).read_text(encoding="utf-8")
        for line in text.splitlines():
            self._echo(line)
        report = self.client.loads(text)
        for skipped in report.skipped:
            self._error(f"line {skipped.line_number}: {skipped.reason}")

    def _add(self, command: str, argument: str) -> None:
        self.client.add(self._require(command, argument))

    def _remove(self, command: str, argument: str) -> None:
        self.client.remove(self._require(command, argument))

    def _nodes(self, command: str, argument: str) -> None:
        self._no_argument(command, argument)
        self._echo(" ".join(str(node) for node in self.client.nodes()))

    def _edges(self, command: str, argument: str) -> None:
        self._no_argument(command, argument)
        for edge in self.client.edges():
            self._echo(str(edge))

    def _recommend(self, command: str, argument: str) -> None:
        term = parse_recommend_command(command)
        self._echo(" ".join(str(product) for product in self.client.recommend_term(term)))

    def _export(self, command: str, argument: str) -> None:
        self._no_argument(command, argument)
        self._echo(self.client.export_dot())

    # --- Helpers ---

    def _error(self, message: str) -> None:
        self._echo(f"{ERROR_PREFIX}{message}")

    @staticmethod
    def _require(command: str, argument: str) -> str:
        if not argument:
            raise CommandError(f"missing relationship: {command!r}")
        return argument

    @staticmethod
    def _no_argument(command: str, argument: str) -> None:
        if argument:
            raise CommandError(f"command takes no arguments: {command!r}")
