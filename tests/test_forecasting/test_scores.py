"""Tests for race_forecaster.forecasting.scores."""

from __future__ import annotations

import pytest

from race_forecaster.forecasting.scores import (
    aggregate,
    is_contributing,
    submission_period_scores,
)
from race_forecaster.models.survey import QuestionResponse, Submission

PERIODS = ["2024-07", "2024-08"]


def _by_id(questions):
    return {q.id: q for q in questions}


class TestSubmissionPeriodScores:
    def test_drivers_minus_barriers(self, bob_submission, sample_questions):
        assert submission_period_scores(bob_submission, _by_id(sample_questions), 2) == [4.0, 2.0]

    def test_weight_applied(self, sample_questions):
        sub = Submission(responses=[QuestionResponse(question_id=2, scores=[8, 4])])
        assert submission_period_scores(sub, _by_id(sample_questions), 2) == [4.0, 2.0]

    def test_skipped_question_ignored(self, alice_submission, sample_questions):
        assert submission_period_scores(alice_submission, _by_id(sample_questions), 2) == [10.0, 10.0]

    def test_unknown_question_ignored(self, sample_questions):
        sub = Submission(responses=[QuestionResponse(question_id=99, scores=[10, 10])])
        assert submission_period_scores(sub, _by_id(sample_questions), 2) == [0.0, 0.0]

    def test_short_score_list_padded_with_zero(self, sample_questions):
        sub = Submission(responses=[QuestionResponse(question_id=1, scores=[6])])
        assert submission_period_scores(sub, _by_id(sample_questions), 3) == [6.0, 0.0, 0.0]


class TestIsContributing:
    def test_fully_skipped_does_not_contribute(self, carol_submission, sample_questions):
        assert not is_contributing(carol_submission, _by_id(sample_questions))

    def test_partially_skipped_contributes(self, alice_submission, sample_questions):
        assert is_contributing(alice_submission, _by_id(sample_questions))

    def test_only_unknown_questions_does_not_contribute(self, sample_questions):
        sub = Submission(responses=[QuestionResponse(question_id=99, scores=[5])])
        assert not is_contributing(sub, _by_id(sample_questions))


class TestAggregate:
    def test_no_submissions_all_zero(self, sample_questions):
        assert aggregate([], sample_questions, ["a", "b", "c"]) == [0.0, 0.0, 0.0]

    def test_fully_skipped_excluded_from_mean(self, sample_submissions, sample_questions):
        # alice [10, 10], bob [4, 2], carol skipped → mean of the two others
        assert aggregate(sample_submissions, sample_questions, PERIODS) == [7.0, 6.0]

    def test_order_invariant(self, sample_submissions, sample_questions):
        forward = aggregate(sample_submissions, sample_questions, PERIODS)
        backward = aggregate(list(reversed(sample_submissions)), sample_questions, PERIODS)
        assert forward == backward

    def test_only_skipped_submissions_all_zero(self, carol_submission, sample_questions):
        assert aggregate([carol_submission], sample_questions, PERIODS) == [0.0, 0.0]

    def test_mean_rounded_to_two_decimals(self, sample_questions):
        subs = [
            Submission(responses=[QuestionResponse(question_id=1, scores=[1])]),
            Submission(responses=[QuestionResponse(question_id=1, scores=[1])]),
            Submission(responses=[QuestionResponse(question_id=1, scores=[0])]),
        ]
        assert aggregate(subs, sample_questions, ["a"]) == [pytest.approx(0.67)]

    def test_net_barrier_goes_negative(self, sample_questions):
        sub = Submission(responses=[QuestionResponse(question_id=3, scores=[8])])
        assert aggregate([sub], sample_questions, ["a"]) == [-8.0]

    def test_empty_period_axis(self, sample_submissions, sample_questions):
        assert aggregate(sample_submissions, sample_questions, []) == []
