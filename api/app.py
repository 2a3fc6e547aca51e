from __future__ import annotations

import logging
import os
import threading
import time
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from src.config import load_config
from src.demo_overrides import FilenameOverrideSource
from src.features import PoseFeatures
from src.predict import Predictor
from src.ranking import InferenceRanker, TopResult
from src.render import render_result
from src.schemas import RankedItemOut, ResultView
from src.signals.pose import RepCounter


class PoseIn(BaseModel):
    knee_angle: float = Field(180.0, description="Knee angle in degrees")
    elbow_angle: float = Field(180.0, description="Elbow angle in degrees")
    hip_y: float = Field(0.5, description="Normalized hip height, 0 top to 1 bottom")


class PredictRequest(BaseModel):
    scores: list[float] | None = Field(None, description="Raw scores from a client-side model, in label order")
    features: list[float] | None = Field(None, description="Feature vector for the heuristic reducer (audio)")
    pose: PoseIn | None = Field(None, description="Joint angles for the heuristic reducer (pose)")
    pixels: list[list[list[float]]] | None = Field(None, description="HxWx3 frame, 0-255")
    samples: list[float] | None = Field(None, description="Mono audio clip, -1..1")
    filename: str | None = Field(None, description="Uploaded file name (demo overrides only)")
    top_k: int | None = Field(None, description="Number of items in top_k", ge=1, le=20)

    def inputs(self) -> dict:
        return {
            "scores": self.scores,
            "features": self.features,
            "pose": PoseFeatures(**self.pose.model_dump()) if self.pose is not None else None,
            "pixels": self.pixels,
            "samples": self.samples,
        }


class PredictResponse(BaseModel):
    modality: str = Field(..., description="Modality that produced the result")
    source: str = Field(..., description="model | heuristic | override | demo")
    demo_mode: bool = Field(..., description="True when the ranking is the random fallback")
    top1: RankedItemOut | None = Field(None, description="Highest-probability item")
    top_k: list[RankedItemOut] = Field(..., description="First k items of the ranking")
    all: list[RankedItemOut] = Field(..., description="Full ranking, descending")
    latency_ms: float = Field(..., description="Inference latency in milliseconds")
    view: ResultView = Field(..., description="Render-ready view")


class RankRequest(BaseModel):
    labels: list[str] = Field(..., description="Label set, in model order")
    scores: list[float] = Field(default_factory=list, description="Score vector; may be empty or mismatched")
    k: int = Field(3, description="Number of items in top_k", ge=1, le=50)
    outputs: Literal["logits", "probabilities"] = Field("logits", description="How to normalize the scores")

    @field_validator("labels")
    @classmethod
    def labels_must_be_nonempty(cls, v):
        if len(v) == 0:
            raise ValueError("Label list is empty")
        return v


class RankResponse(BaseModel):
    source: str = Field(..., description="model | demo")
    top1: RankedItemOut | None = Field(None, description="Highest-probability item")
    top_k: list[RankedItemOut] = Field(..., description="First k items of the ranking")
    all: list[RankedItemOut] = Field(..., description="Full ranking, descending")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Health status of the API")
    uptime_seconds: float = Field(..., description="Uptime of the API in seconds")
    model_loaded: dict[str, bool] = Field(..., description="Whether each modality loaded a real model")


class ModalityInfo(BaseModel):
    name: str = Field(..., description="Modality name")
    labels: list[str] = Field(..., description="Label set, in model order")
    image_size: int = Field(..., description="Model input size")
    backend: str | None = Field(None, description="onnx | joblib, or null in demo mode")
    model_version: str = Field(..., description="Version from metadata.json")
    demo_mode: bool = Field(..., description="True when no model is loaded")


class InfoResponse(BaseModel):
    artifact_dir: str = Field(..., description="Directory where model bundles are stored")
    top_k: int = Field(..., description="Default top-k size")
    modalities: list[ModalityInfo] = Field(..., description="Loaded modalities")


class RepsResponse(BaseModel):
    reps: int = Field(..., description="Current repetition count")


logger = logging.getLogger(__name__)

app = FastAPI(title="Multi-modal Inference Ranker API")

_START_TIME = time.time()
_reps_lock = threading.Lock()


def get_artifact_dir() -> str:
    artifact_dir = os.getenv("MODEL_ARTIFACT_DIR", "artifacts/latest")
    if not os.path.exists(artifact_dir):
        logger.warning("Artifact directory '%s' does not exist, all modalities run in demo mode", artifact_dir)
    return artifact_dir


def create_predictor() -> Predictor:
    config = load_config(os.getenv("MODALITY_CONFIG") or None)
    overrides_path = os.getenv("DEMO_OVERRIDES_PATH")
    overrides = FilenameOverrideSource.load(overrides_path) if overrides_path else None
    return Predictor(artifact_dir=get_artifact_dir(), config=config, overrides=overrides)


@app.on_event("startup")
def load_model_on_startup():
    try:
        app.state.predictor = create_predictor()
        app.state.rep_counter = RepCounter(
            threshold=app.state.predictor.config.modalities["pose"].rep_threshold
            if "pose" in app.state.predictor.config.modalities
            else 0.7
        )
    except Exception as e:
        app.state.predictor = None
        raise RuntimeError(f"Failed to load models: {e}")


def get_predictor() -> Predictor:
    predictor = getattr(app.state, "predictor", None)
    if predictor is None:
        raise HTTPException(status_code=503, detail="Models not loaded")
    return predictor


def get_rep_counter() -> RepCounter:
    counter = getattr(app.state, "rep_counter", None)
    if counter is None:
        counter = app.state.rep_counter = RepCounter()
    return counter


def _items(ranking) -> list[RankedItemOut]:
    return [RankedItemOut(label=item.label, prob=item.prob) for item in ranking]


@app.get("/health", response_model=HealthResponse)
def health():
    uptime_seconds = time.time() - _START_TIME
    predictor = getattr(app.state, "predictor", None)
    loaded = {m.name: not m.demo_mode for m in predictor.models} if predictor is not None else {}
    return HealthResponse(status="ok", uptime_seconds=uptime_seconds, model_loaded=loaded)


@app.get("/info", response_model=InfoResponse)
def info(predictor: Predictor = Depends(get_predictor)) -> InfoResponse:
    meta = predictor.info()
    return InfoResponse(**meta)


@app.post("/predict/{modality}", response_model=PredictResponse)
def predict(
    modality: str,
    request: PredictRequest,
    predictor: Predictor = Depends(get_predictor),
    rep_counter: RepCounter = Depends(get_rep_counter),
) -> PredictResponse:
    try:
        signal = predictor.get_signal(modality)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]))

    try:
        result: TopResult = predictor.predict(
            modality, request.inputs(), top_k=request.top_k, filename=request.filename
        )
        reps = None
        if modality == "pose":
            with _reps_lock:
                reps = rep_counter.update(result)
        view = render_result(result, signal.config, predictor.config, reps=reps)
    except Exception as e:
        logger.exception("Prediction failed for %s", modality)
        raise HTTPException(status_code=500, detail=f"Internal server error: {e}")

    return PredictResponse(
        modality=modality,
        source=result.source,
        demo_mode=result.demo_mode,
        top1=RankedItemOut(label=result.top1.label, prob=result.top1.prob) if result.top1 else None,
        top_k=_items(result.top_k),
        all=_items(result.all),
        latency_ms=result.latency_ms,
        view=view,
    )


@app.post("/rank", response_model=RankResponse)
def rank(request: RankRequest) -> RankResponse:
    result = InferenceRanker(k=request.k).from_scores(request.labels, request.scores, outputs=request.outputs)
    return RankResponse(
        source=result.source,
        top1=RankedItemOut(label=result.top1.label, prob=result.top1.prob) if result.top1 else None,
        top_k=_items(result.top_k),
        all=_items(result.all),
    )


@app.post("/reps/reset", response_model=RepsResponse)
def reset_reps(rep_counter: RepCounter = Depends(get_rep_counter)) -> RepsResponse:
    with _reps_lock:
        rep_counter.reset()
        return RepsResponse(reps=rep_counter.reps)
