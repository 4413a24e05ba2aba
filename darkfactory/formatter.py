"""Human-readable rendering of a status snapshot."""

from __future__ import annotations

from .status import Status

_UNITS = ("KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Render a byte count as e.g. 512 B, 1.5 KB or 2.0 MB."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    divisor, exponent = unit, 0
    remaining = size // unit
    while remaining >= unit:
        divisor *= unit
        exponent += 1
        remaining //= unit
    exponent = min(exponent, len(_UNITS) - 1)
    return f"{size / divisor:.1f} {_UNITS[exponent]}"


def format_status(status: Status) -> str:
    """Render the status block printed by the status command."""
    lines = ["Dark Factory Status"]

    if status.daemon_pid > 0:
        lines.append(f"  Daemon:     {status.daemon} (pid {status.daemon_pid})")
    else:
        lines.append(f"  Daemon:     {status.daemon}")

    if not status.current_prompt:
        lines.append("  Current:    idle")
    else:
        current = f"  Current:    {status.current_prompt}"
        if status.executing_since:
            current += f" (executing since {status.executing_since})"
        lines.append(current)
        if status.container:
            state = "running" if status.container_running else "not running"
            lines.append(f"  Container:  {status.container} ({state})")

    if status.queue_count > 0:
        lines.append(f"  Queue:      {status.queue_count} prompts")
        lines.extend(f"    - {name}" for name in status.queued_prompts)
    else:
        lines.append("  Queue:      0 prompts")

    lines.append(f"  Completed:  {status.completed_count} prompts")

    if status.ideas_count > 0:
        lines.append(f"  Ideas:      {status.ideas_count} prompts")

    if status.last_log_file:
        log_info = status.last_log_file
        if status.last_log_size > 0:
            log_info += f" ({format_bytes(status.last_log_size)})"
        lines.append(f"  Last log:   {log_info}")

    return "\n".join(lines) + "\n"