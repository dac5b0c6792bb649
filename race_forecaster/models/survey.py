"""
Driver/barrier survey models.

``DriverQuestion`` is one question configured for a report.  Positive
questions are *drivers* (they pull the forecast up); negative questions are
*barriers* (they drag it down).  ``weight`` multiplies every score given to
the question.

``Submission`` is one analyst's answer sheet for a (report, base period):
one ``QuestionResponse`` per question, holding a score per label period.
A skipped question contributes nothing for any period.

Scores live on the fixed 0..10 scale (see ``forecasting.scale`` for the
mapping between configured labels and scores).
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

Polarity = Literal["positive", "negative"]

SCORE_MIN = 0.0
SCORE_MAX = 10.0


class DriverQuestion(BaseModel):
    """A weighted driver or barrier question.

    Attributes:
        id:       Question primary key.
        text:     Question wording shown to analysts.
        weight:   Non-negative score multiplier.
        polarity: ``"positive"`` (driver) or ``"negative"`` (barrier).
        graph_id: Report the question belongs to, if known.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    text: str = ""
    weight: float = 1.0
    polarity: Polarity = "positive"
    graph_id: Optional[int] = None

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"weight must be non-negative, got {v}.")
        return v

    @field_validator("polarity", mode="before")
    @classmethod
    def normalize_polarity(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class QuestionResponse(BaseModel):
    """An analyst's scores for one question across the label periods.

    Attributes:
        question_id: FK to ``DriverQuestion.id``.
        scores:      One score per label period (``None`` = not answered).
        skipped:     True if the analyst skipped the question entirely.
    """

    model_config = ConfigDict(frozen=True)

    question_id: int
    scores: list[Optional[float]] = []
    skipped: bool = False

    @field_validator("scores")
    @classmethod
    def validate_scale(cls, v: list[Optional[float]]) -> list[Optional[float]]:
        for score in v:
            if score is not None and not SCORE_MIN <= score <= SCORE_MAX:
                raise ValueError(
                    f"scores must be within [{SCORE_MIN:g}, {SCORE_MAX:g}], got {score}."
                )
        return v

    def score_at(self, period_index: int) -> float:
        """Return the score for ``period_index``; 0 when skipped, missing or unanswered."""
        if self.skipped or not 0 <= period_index < len(self.scores):
            return 0.0
        score = self.scores[period_index]
        return 0.0 if score is None else score


class Submission(BaseModel):
    """One analyst's complete response for a report and base period.

    Attributes:
        submission_id: Upstream primary key, if known.
        user_email:    Submitting analyst.
        graph_id:      Report the submission belongs to.
        base_period:   Base month the analyst scored against.
        responses:     One entry per answered or skipped question.
    """

    model_config = ConfigDict(frozen=True)

    submission_id: Optional[int] = None
    user_email: Optional[str] = None
    graph_id: Optional[int] = None
    base_period: Optional[str] = None
    responses: list[QuestionResponse] = []
