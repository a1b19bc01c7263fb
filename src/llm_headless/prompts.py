"""System prompt for headless sessions, including the packet-capture hint."""

from __future__ import annotations

import re
from typing import Final

__all__ = ["CORE_PROMPT", "PCAP_HINT", "get_core_system_prompt", "mentions_capture_file"]

CORE_PROMPT: Final = """\
You are a command-line agent running non-interactively. Nobody can answer
follow-up questions, so finish the task with the tools you have and then
give a concise final answer.

- Prefer reading files and listing directories over guessing their contents.
- Call tools only with the arguments their schema declares.
- When a tool fails, read the error, adjust, and try a different approach.
- Keep answers short and plain; the output may be consumed by scripts."""

PCAP_HINT: Final = """\
# Packet captures
Files ending in .pcap, .pcapng or .cap are binary packet captures. Never
read them with read_file. Summarise them with command-line tools through
run_shell_command instead, for example:
- `capinfos <file>` for duration, packet count and link type
- `tshark -r <file> -q -z conv,tcp` for TCP conversations
- `tshark -r <file> -q -z io,phs` for the protocol hierarchy
- `tshark -r <file> -Y '<display filter>' -T fields -e <field>` to extract fields
Limit output with display filters or `-c <count>` so results stay small.
If run_shell_command is not available, say so instead of guessing."""

_CAPTURE_FILE_RE = re.compile(r"[\w./\\-]+\.(?:pcapng|pcap|cap)\b", re.IGNORECASE)


def get_core_system_prompt(*, pcap_hint: bool = True, user_memory: str = "") -> str:
    """Assemble the system prompt.

    Args:
        pcap_hint: Append the packet-capture handling section.
        user_memory: Extra user-supplied instructions, appended last.
    """
    sections = [CORE_PROMPT]
    if pcap_hint:
        sections.append(PCAP_HINT)
    memory = user_memory.strip()
    if memory:
        sections.append(f"# User instructions\n{memory}")
    return "\n\n".join(sections)


def mentions_capture_file(text: str) -> list[str]:
    """Return the capture file names referenced in *text*, in order."""
    return _CAPTURE_FILE_RE.findall(text)
