from __future__ import annotations

from src.config import AppConfig, ModalityConfig
from src.ranking import TopResult
from src.schemas import BarItem, ResultView


def percent(prob: float) -> int:
    return int(round((prob or 0.0) * 100))


def render_result(
    result: TopResult, modality: ModalityConfig, config: AppConfig, reps: int | None = None
) -> ResultView:
    '''
    Build the view the front-end paints: badge, bars, latency, tip.

    Every ranked label gets a bar. The tip is keyed by the top-1 label and
    falls back to the modality's generic tip. Pose results also carry a coach
    message and the repetition count.
    '''
    top1 = result.top1
    bars = [BarItem(label=item.label, pct=percent(item.prob), color=modality.colors.get(item.label, "")) for item in result.all]

    if result.demo_mode:
        status, level = config.demo_message, "warn"
    else:
        status, level = config.ready_message, "ok"

    if top1 is None:
        return ResultView(latency_ms=result.latency_ms, tip=modality.fallback_tip, status=status, status_level=level)

    coach = None
    if modality.name == "pose":
        coach = f"Ejercicio dominante: {top1.label} ({percent(top1.prob)}%)."

    return ResultView(
        badge=f"{top1.label.upper()} {percent(top1.prob)}%",
        bars=bars,
        latency_ms=result.latency_ms,
        tip=modality.tips.get(top1.label, modality.fallback_tip),
        status=status,
        status_level=level,
        coach=coach,
        reps=reps,
    )
