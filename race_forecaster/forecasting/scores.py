"""
Driver/barrier score aggregation.

Each analyst submission is reduced to one score per label period::

    period_score[i] = Σ score_i(q)·weight(q) over positive questions
                    − Σ score_i(q)·weight(q) over negative questions

Skipped questions contribute 0 in every period, and responses to questions
the report no longer has are ignored.  ``aggregate()`` then averages the
per-submission series across every *contributing* submission — a submission
with no scored (non-skipped) response to a known question does not count
towards the denominator.

The aggregate is used twice per forecast stack: over all submissions (the
survey consensus) and over the requesting analyst's own submissions (build
your own forecast).
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from race_forecaster.models.survey import DriverQuestion, Submission


def submission_period_scores(
    submission: Submission,
    questions_by_id: dict[int, DriverQuestion],
    n_periods: int,
) -> list[float]:
    """Return one net driver-minus-barrier score per period for a submission."""
    scores = [0.0] * n_periods
    for response in submission.responses:
        question = questions_by_id.get(response.question_id)
        if question is None or response.skipped:
            continue
        sign = 1.0 if question.polarity == "positive" else -1.0
        for i in range(n_periods):
            scores[i] += sign * response.score_at(i) * question.weight
    return scores


def is_contributing(submission: Submission, questions_by_id: dict[int, DriverQuestion]) -> bool:
    """True if the submission has at least one non-skipped response to a known question."""
    return any(
        not r.skipped and r.question_id in questions_by_id
        for r in submission.responses
    )


def aggregate(
    submissions: Iterable[Submission],
    questions: Sequence[DriverQuestion],
    periods: Sequence[str],
) -> list[float]:
    """Average the per-submission period scores across contributing submissions.

    Args:
        submissions: Submissions to average (any order).
        questions:   The report's questions (weights and polarity).
        periods:     Label periods; the output is aligned to this list.

    Returns:
        One mean score per period, rounded to 2 decimals.  All zeros when no
        submission contributes.
    """
    n_periods = len(periods)
    questions_by_id = {q.id: q for q in questions}

    totals = [0.0] * n_periods
    count = 0
    for submission in submissions:
        if not is_contributing(submission, questions_by_id):
            continue
        count += 1
        for i, score in enumerate(submission_period_scores(submission, questions_by_id, n_periods)):
            totals[i] += score

    if count == 0:
        return [0.0] * n_periods

    averages: list[float] = []
    for total in totals:
        mean = total / count
        averages.append(round(mean, 2) if math.isfinite(mean) else 0.0)
    return averages
