"""ASCII rendering helpers for the progress line."""

SPINNER_FRAMES: list[str] = [
    "⠋",
    "⠙",
    "⠹",
    "⠸",
    "⠼",
    "⠴",
    "⠦",
    "⠧",
    "⠇",
    "⠏",
]


def render_bar(completed: float, total: float, width: int = 30) -> str:
    """Render an ASCII progress bar.

    Args:
        completed: Amount completed
        total: Total amount
        width: Width of the progress bar in characters

    Returns:
        ASCII progress bar string like "[========>     ]"

    """
    if total <= 0:
        return "[" + "=" * width + "]"

    filled_width = int((completed / total) * width)
    filled_width = max(0, min(filled_width, width))

    if filled_width == width:
        bar = "=" * width
    elif filled_width > 0:
        bar = "=" * (filled_width - 1) + ">" + " " * (width - filled_width)
    else:
        bar = " " * width

    return f"[{bar}]"


def format_percentage(percent: float) -> str:
    """Format a 0-100 value as a right-aligned percentage like " 75%"."""
    percent = max(0.0, min(percent, 100.0))
    return f"{percent:>3.0f}%"


def truncate_text(text: str, max_length: int, ellipsis: str = "...") -> str:
    """Truncate text to maximum length with ellipsis."""
    if len(text) <= max_length:
        return text

    if max_length <= len(ellipsis):
        return ellipsis[:max_length]

    return text[: max_length - len(ellipsis)] + ellipsis
