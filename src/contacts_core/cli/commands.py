# src/contacts_core/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..aggregation.scheduler import AGGREGATION_TASK_ID
from ..core.state import AppState
from ..photos.processor import PhotoProcessingError, PhotoProcessor

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_AGGREGATE_NOW_TIMEOUT_SECONDS = 60.0


class CommandRegistry:
    """Simple slash-command registry used by the maintenance console (/help, /split, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_bytes(n: int) -> str:
    size = float(n)
    for unit in ("B", "KiB", "MiB"):
        if size < 1024.0:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} GiB"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    sched = state.aggregation_scheduler.state()
    worker = "running" if state.task_scheduler.is_running_for_test() else "idle"
    last = state.aggregator.last_result
    last_str = "never" if last is None else (
        f"{last.cluster_count} contacts{' (interrupted)' if last.interrupted else ''}"
    )
    return (
        "Status:\n"
        f"  Raw contacts: {state.raw_contacts.count()}\n"
        f"  Last aggregation: {last_str}\n"
        f"  Aggregation scheduler: {sched.status}\n"
        f"  Maintenance worker: {worker} (generation {state.task_scheduler.generation})\n"
        f"  Photos: {state.photo_store.count()} files, {_fmt_bytes(state.photo_store.get_total_size())}"
    )


def cmd_normalize(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /normalize <name>"
    name = " ".join(args)
    return f"{name!r} -> {state.matcher.normalize(name)!r}"


def cmd_split(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /split <full name>"
    name = state.matcher.split(" ".join(args))
    return (
        "Structured name:\n"
        f"  prefix: {name.prefix}\n"
        f"  given: {name.given_names}\n"
        f"  middle: {name.middle_name}\n"
        f"  family: {name.family_name}\n"
        f"  suffix: {name.suffix}\n"
        f"  display: {state.matcher.join(name)}"
    )


def cmd_distance(state: AppState, args: list[str]) -> str:
    """
    /distance <name one> | <name two>
    """
    text = " ".join(args)
    if "|" not in text:
        return "Usage: /distance <name one> | <name two>"
    left, right = (s.strip() for s in text.split("|", 1))
    score = state.matcher.get_distance(left, right)
    return f"distance({left!r}, {right!r}) = {score:.2f}"


def cmd_contacts(state: AppState, args: list[str]) -> str:
    """
    /contacts add <name>  -> add a raw contact and request aggregation
    /contacts list        -> list raw contacts with their aggregate id
    """
    sub = args[0].lower() if args else "list"

    if sub == "add":
        name = " ".join(args[1:]).strip()
        if not name:
            return "Usage: /contacts add <display name>"
        raw_id = state.raw_contacts.add(name)
        logger.debug("Console added raw contact id=%s", raw_id)
        state.aggregation_scheduler.schedule()
        return f"Raw contact {raw_id} added; aggregation requested."

    if sub == "list":
        rows = list(state.raw_contacts.iter_raw_contact_names())
        if not rows:
            return "No raw contacts."
        lines = ["Raw contacts (id -> contact):"]
        for r in rows:
            contact = r.contact_id if r.contact_id is not None else "-"
            lines.append(f"  {r.raw_contact_id} -> {contact}: {r.display_name}")
        return "\n".join(lines)

    return "Usage: /contacts add <name> | /contacts list"


def cmd_aggregate(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /aggregate      -> request a (debounced) background pass
    /aggregate now  -> run a pass on the maintenance worker, wait, and show clusters
    """
    if args and args[0].lower() == "now":
        if emit:
            with contextlib.suppress(Exception):
                emit("[AGGREGATE] Running pass...")
        # Same worker as background passes, so two passes never overlap.
        state.task_scheduler.schedule_task(AGGREGATION_TASK_ID, state.aggregation_scheduler.run)
        if not state.task_scheduler.wait_idle(timeout=_AGGREGATE_NOW_TIMEOUT_SECONDS):
            return "Aggregation is still running; check /status later."
        result = state.aggregator.last_result
        if result is None:
            return "No aggregation result."
        lines = [f"Contacts: {result.cluster_count}{' (interrupted)' if result.interrupted else ''}"]
        for ids, display in zip(result.clusters, result.display_names):
            lines.append(f"  {display}: {', '.join(str(i) for i in ids)}")
        return "\n".join(lines)

    state.aggregation_scheduler.schedule()
    return f"Aggregation requested (scheduler: {state.aggregation_scheduler.status})."


def cmd_photos(state: AppState, args: list[str]) -> str:
    """
    /photos stat              -> count and total size
    /photos add <path>        -> process an image file and store its display photo
    /photos cleanup [ids...]  -> delete every photo not in ids
    /photos clear             -> delete all photos
    """
    sub = args[0].lower() if args else "stat"
    store = state.photo_store

    if sub == "stat":
        return f"Photos: {store.count()} files, {_fmt_bytes(store.get_total_size())} in {store.directory}"

    if sub == "add":
        if len(args) < 2:
            return "Usage: /photos add <image path>"
        path = Path(" ".join(args[1:])).expanduser()
        try:
            processor = PhotoProcessor(
                path.read_bytes(),
                state.settings.max_display_photo_dim,
                state.settings.max_thumbnail_dim,
            )
        except FileNotFoundError:
            return f"No such file: {path}"
        except PhotoProcessingError as e:
            return f"Not a usable image: {e}"
        file_id = store.insert(processor)
        if file_id == 0:
            return "Photo is thumbnail-sized; no display file stored."
        return f"Stored photo file id={file_id}."

    if sub == "cleanup":
        try:
            ids = {int(a) for a in args[1:]}
        except ValueError:
            return "Usage: /photos cleanup [file ids in use...]"
        missing = store.cleanup(ids)
        if missing:
            return f"Cleanup done. Unknown ids: {', '.join(str(i) for i in sorted(missing))}"
        return "Cleanup done."

    if sub == "clear":
        store.clear()
        return "All photos deleted."

    return "Usage: /photos stat | add <path> | cleanup [ids...] | clear"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show contacts, scheduler and photo store status.")
registry.register("normalize", cmd_normalize, help_text="Normalize a name for matching: /normalize <name>.")
registry.register("split", cmd_split, help_text="Split a full name: /split <full name>.")
registry.register("distance", cmd_distance, help_text="Name similarity: /distance <a> | <b>.")
registry.register("contacts", cmd_contacts, help_text="Raw contacts: /contacts add <name> | /contacts list.")
registry.register("aggregate", cmd_aggregate, help_text="Request aggregation: /aggregate | /aggregate now.")
registry.register(
    "photos", cmd_photos, help_text="Photo store: /photos stat | add <path> | cleanup [ids] | clear."
)
