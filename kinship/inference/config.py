"""Inference settings from environment variables (KIN_ prefix)."""

from __future__ import annotations

import os


class InferenceConfig:
    """Configuration from environment variables (KIN_ prefix)."""

    def __init__(self) -> None:
        self.default_max_generations: int = int(os.environ.get("KIN_MAX_GENERATIONS", "4"))
        self.max_generations_limit: int = int(
            os.environ.get("KIN_MAX_GENERATIONS_LIMIT", "10")
        )
        self.batch_workers: int = int(os.environ.get("KIN_BATCH_WORKERS", "1"))
        self.suggestion_min_confidence: float = float(
            os.environ.get("KIN_SUGGESTION_MIN_CONFIDENCE", "0.8")
        )

    def to_dict(self) -> dict:
        return {
            "default_max_generations": self.default_max_generations,
            "max_generations_limit": self.max_generations_limit,
            "batch_workers": self.batch_workers,
            "suggestion_min_confidence": self.suggestion_min_confidence,
        }


config = InferenceConfig()
