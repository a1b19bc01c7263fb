"""
Generation parameter normalization.

Settings files carry a free-form ``generation`` mapping. Before it reaches
an adapter it is normalized to one shape:

- Standard keys work across providers:
    temperature: float
    max_tokens: int
    top_p: float
    stop: str | list[str]
    seed: int
    tool_choice: str | dict
    parallel_tool_calls: bool
    user: str

- Anything else is provider specific and goes under ``extra``, which the
  adapter forwards as-is. Example: ``extra.reasoning_effort = "high"``.

``stream`` and ``tools`` are owned by the agent client and never taken from
settings.
"""

from __future__ import annotations

from typing import Any

STANDARD_KEYS = {
    "temperature",
    "max_tokens",
    "top_p",
    "stop",
    "seed",
    "tool_choice",
    "parallel_tool_calls",
    "user",
    "frequency_penalty",
    "presence_penalty",
}

RESERVED_KEYS = {"stream", "tools", "messages", "model", "system"}


def normalize_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """
    Normalize a generation params dict to ``{<standard keys>..., "extra": {...}}``.

    Rules:
      - Keys in RESERVED_KEYS are rejected
      - Keys not in STANDARD_KEYS are moved into extra
      - A caller-supplied ``extra`` dict is merged last and wins
      - None values are dropped

    >>> normalize_params({"temperature": 0.2, "reasoning_effort": "high"})
    {'temperature': 0.2, 'extra': {'reasoning_effort': 'high'}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    std: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in RESERVED_KEYS:
            raise ValueError(f"{key!r} cannot be set through generation params")
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    std["extra"] = {**extra, **user_extra}
    return std


def flatten_params(params: dict[str, Any]) -> dict[str, Any]:
    """Merge ``extra`` back into the top level; standard keys win on clashes."""
    flat = dict(params)
    extras = flat.pop("extra", {}) or {}
    for k, v in extras.items():
        flat.setdefault(k, v)
    return flat
