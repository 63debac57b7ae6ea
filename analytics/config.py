from __future__ import annotations

"""Analytics configuration (heatmap thresholds) using Pydantic."""

from pydantic import BaseModel, Field, model_validator


class AnalyticsConfig(BaseModel):
    """Accuracy thresholds for heatmap colour buckets.

    - poor_below: accuracy under this is "poor"
    - fair_below: accuracy under this (and >= poor_below) is "fair"
    - good_below: accuracy under this is "good"; at or above is "excellent"
    Cells with no attempts are always "no_data".
    """

    poor_below: float = Field(0.4, ge=0, le=1)
    fair_below: float = Field(0.6, ge=0, le=1)
    good_below: float = Field(0.8, ge=0, le=1)

    @model_validator(mode="after")
    def _ordered(self) -> "AnalyticsConfig":
        if not self.poor_below <= self.fair_below <= self.good_below:
            raise ValueError("thresholds must satisfy poor_below <= fair_below <= good_below")
        return self
