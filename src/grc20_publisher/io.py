"""
Domain: I/O (Membrane)

The only place allowed to touch sys.stdout (via ctx.output_sink).
All progress and diagnostic output of the pipeline flows through here, so the
stages stay decoupled from display.

  - ui_render: Render content to the output sink with optional styling
  - sys_log: Log a message to the output sink with a level prefix
"""
from __future__ import annotations

from typing import Optional

from .schema import ExecutionContext

LOG_PREFIXES = {
    "debug": "[DEBUG]",
    "info": "[GRC20]",
    "warn": "[WARN]",
    "error": "[ERROR]",
}


def _resolve(ctx: Optional[ExecutionContext]) -> ExecutionContext:
    return ctx if ctx is not None else ExecutionContext(output_sink=print)


def ui_render(
    content: str,
    ctx: Optional[ExecutionContext] = None,
    style: str = "plain",
    title: str | None = None,
) -> None:
    """
    Render user-facing output to the configured sink.

    Args:
        content: The text to render
        ctx: Execution context with optional output_sink (stdout without one)
        style: "plain", "box", "heading", "success", "warning" or "error"
        title: Optional title for boxed content
    """
    out = _resolve(ctx).emit

    if style == "box":
        width = 60
        out(f"╭{'─' * (width - 2)}╮")
        if title:
            out(f"│  {title:<{width - 5}}│")
            out(f"╰{'─' * (width - 2)}╯")
        out("")
        for line in content.split("\n"):
            out(f"  {line}")
        out("")
    elif style == "heading":
        out("")
        out(f"## {content}")
        out("")
    elif style == "success":
        out(f"✓ {content}")
    elif style == "warning":
        out(f"⚠️  {content}")
    elif style == "error":
        out(f"✗ {content}")
    else:  # plain
        out(content)


def sys_log(
    message: str,
    ctx: Optional[ExecutionContext] = None,
    level: str = "info",
) -> None:
    """Log a message to the configured sink, prefixed by its level."""
    prefix = LOG_PREFIXES.get(level, LOG_PREFIXES["info"])
    _resolve(ctx).emit(f"{prefix} {message}")
