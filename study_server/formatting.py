# -*- coding: utf-8 -*-
"""Plain-text rendering of stored plans."""
from .models import PlanRecord
from .timestamps import format_datetime_human


def format_plan(plan: PlanRecord) -> str:
    """Formats a plan's blocks as a clean table.

    :param plan: The plan to format.
    :return: Formatted table string of the plan's blocks.
    """
    if not plan.blocks:
        return "🗓 No work blocks planned."

    lines = []
    lines.append("🗓 STUDY PLAN")
    lines.append("=" * 100)
    lines.append(f"{'#':<4} {'Task':<35} {'Subject':<15} {'Start':<18} {'End':<18}")
    lines.append("-" * 100)

    for idx, block in enumerate(plan.blocks, 1):
        title = block.title[:34] if len(block.title) > 34 else block.title
        subject = block.subject[:14] if block.subject and len(block.subject) > 14 else (block.subject or "—")
        lines.append(
            f"{idx:<4} {title:<35} {subject:<15} {format_datetime_human(block.start):<18} "
            f"{format_datetime_human(block.end):<18}"
        )

    lines.append("=" * 100)
    lines.append(f"Total: {len(plan.blocks)} block(s)")
    return "\n".join(lines)


def format_latest_plan(plans: list[PlanRecord]) -> str:
    if not plans:
        return "🗓 No plans generated yet."
    return format_plan(plans[-1])
