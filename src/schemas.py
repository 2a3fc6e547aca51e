from pydantic import BaseModel, Field


class RankedItemOut(BaseModel):
    label: str = Field(..., description="Class label")
    prob: float = Field(..., description="Probability in [0, 1]", ge=0.0, le=1.0)


class BarItem(BaseModel):
    label: str = Field(..., description="Class label")
    pct: int = Field(..., description="Rounded percentage, 0-100")
    color: str = Field("", description="CSS color class for the bar fill, empty when unknown")


class ResultView(BaseModel):
    badge: str | None = Field(None, description="Top-1 badge text, e.g. 'VIDRIO 87%'")
    bars: list[BarItem] = Field(default_factory=list, description="One bar per ranked label")
    latency_ms: float = Field(..., description="Inference latency in milliseconds")
    tip: str = Field("", description="Tip for the top-1 label, or the generic tip")
    status: str = Field(..., description="Model status message")
    status_level: str = Field(..., description="'ok' or 'warn'")
    coach: str | None = Field(None, description="Pose coach message")
    reps: int | None = Field(None, description="Pose repetition count")
