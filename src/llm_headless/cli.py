"""Command-line entry point: ``llm-headless -p "prompt" [--jsonl]``."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
import uuid
from contextlib import suppress
from typing import IO, Any, Optional, Sequence

from llm_headless import __version__
from llm_headless.auth import Provider
from llm_headless.cancellation import CancellationToken
from llm_headless.config import Config, load_settings
from llm_headless.errors import ConfigError
from llm_headless.headless import run_non_interactive
from llm_headless.telemetry import initialize_telemetry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-headless",
        description="Run one non-interactive agent session and stream the result.",
    )
    parser.add_argument("-p", "--prompt", help="Prompt text; appended to stdin input.")
    parser.add_argument(
        "--jsonl",
        action="store_true",
        help="Emit token/tool_call/tool_result events as JSON lines.",
    )
    parser.add_argument("--provider", choices=[p.value for p in Provider])
    parser.add_argument("-m", "--model", help="Model identifier.")
    parser.add_argument(
        "--max-session-turns",
        type=int,
        help="Stop after this many turns (negative for unlimited).",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Verbose logging.")
    parser.add_argument(
        "--allow-shell",
        action="store_true",
        help="Let the model run shell commands.",
    )
    parser.add_argument(
        "--no-pcap-hint",
        action="store_true",
        help="Leave the packet-capture hint out of the system prompt.",
    )
    parser.add_argument(
        "--telemetry", action="store_true", help="Enable OpenTelemetry tracing."
    )
    parser.add_argument(
        "--workspace", default=".", help="Workspace root for settings and tools."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def read_input(prompt: Optional[str], stdin: IO[str]) -> str:
    """Combine piped stdin (first) with the ``--prompt`` text."""
    piped = ""
    if not stdin.isatty():
        piped = stdin.read().strip()
    pieces = [p for p in (piped, (prompt or "").strip()) if p]
    return "\n\n".join(pieces)


def settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {
        "provider": args.provider,
        "model": args.model,
        "max_session_turns": args.max_session_turns,
    }
    if args.debug:
        overrides["debug_mode"] = True
    if args.allow_shell:
        overrides["allow_shell"] = True
    if args.no_pcap_hint:
        overrides["pcap_hint"] = False
    if args.telemetry:
        overrides["telemetry"] = {"enabled": True}
    return overrides


def new_prompt_id() -> str:
    return f"{uuid.uuid4()}########1"


async def _run(config: Config, text: str, prompt_id: str, jsonl: bool) -> None:
    cancellation = CancellationToken()
    loop = asyncio.get_running_loop()
    # add_signal_handler is not available on every platform
    with suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, cancellation.cancel)
    try:
        await run_non_interactive(
            config, text, prompt_id, jsonl, cancellation=cancellation
        )
    finally:
        with suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)
        await config.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    text = read_input(args.prompt, sys.stdin)
    if not text:
        parser.error("no input provided via --prompt or stdin")

    try:
        settings = load_settings(args.workspace, overrides=settings_overrides(args))
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    config = Config(settings, workspace_dir=args.workspace)
    initialize_telemetry(config)
    asyncio.run(_run(config, text, new_prompt_id(), args.jsonl))
    return 0


if __name__ == "__main__":
    sys.exit(main())
