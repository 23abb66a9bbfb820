"""
Tests for step validation and numeric input parsing.
"""

import pytest
from datetime import date

from models.data_models import (
    CampaignConfig, ConflictLevel, ConflictReport, PlanningMode, ValidationSeverity, WizardStep
)
from business_logic.campaign_validator import CampaignValidator, parse_number


@pytest.mark.parametrize("raw, expected", [
    (1500, 1500.0),
    ("1500.50", 1500.5),
    ("1500,50", 1500.5),
    (" 2 000 ", 2000.0),
    ("", None),
    ("abc", None),
    ("inf", None),
    (None, None),
    (True, None),
])
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


class TestCampaignValidator:
    """Field-attributed issues per wizard step."""

    def setup_method(self):
        self.validator = CampaignValidator()
        self.config = CampaignConfig(
            platforms=["Meta", "TikTok"],
            total_investment=5000.0,
            planning_mode=PlanningMode.PERCENTAGE,
            percentages={"Meta": 60.0, "TikTok": 40.0},
            amounts={"Meta": 3000.0, "TikTok": 2000.0},
            release_date=date(2024, 5, 15),
            film_title="Silent Harbour",
            genre="Thriller",
            territory="Spain"
        )

    def test_missing_audience_is_only_a_warning(self):
        result = self.validator.validate_step(WizardStep.FILM_AND_DATES, self.config)

        assert result.is_valid
        assert result.total_warnings == 1
        assert result.issues[0].field == "target_audience"

    def test_percentage_sum_tolerance(self):
        self.config.percentages = {"Meta": 60.0, "TikTok": 39.6}
        assert self.validator.validate_step(WizardStep.PLATFORMS_AND_BUDGET, self.config).is_valid

        self.config.percentages = {"Meta": 60.0, "TikTok": 39.5}
        result = self.validator.validate_step(WizardStep.PLATFORMS_AND_BUDGET, self.config)
        assert not result.is_valid
        assert "99.5" in result.messages_for("percentages")[0]

    def test_zero_total_skips_sum_check(self):
        self.config.total_investment = 0.0
        self.config.percentages = {"Meta": 0.0, "TikTok": 0.0}

        issues = self.validator.validate_allocation(self.config)

        assert issues == []

    @pytest.mark.parametrize("total", [float("nan"), float("inf")])
    def test_non_finite_investment_is_rejected(self, total):
        self.config.total_investment = total

        issues = self.validator.validate_investment(self.config)

        assert issues[0].field == "total_investment"
        assert issues[0].severity == ValidationSeverity.ERROR

    def test_manual_end_date_checked_without_timeline(self):
        self.config.manual_end_date = date(2024, 5, 19)

        issues = self.validator.validate_schedule(self.config)

        assert issues[0].field == "campaign_end_date"
        assert issues[0].severity == ValidationSeverity.ERROR

    def test_low_conflict_is_advisory(self):
        report = ConflictReport(level=ConflictLevel.LOW, score=4)

        issues = self.validator.validate_conflicts(report)

        assert issues[0].severity == ValidationSeverity.WARNING

    def test_review_runs_every_check(self):
        config = CampaignConfig()
        result = self.validator.validate_step(WizardStep.REVIEW, config)

        fields = {issue.field for issue in result.errors}
        assert {"film_title", "release_date", "platforms", "total_investment"} <= fields

    def test_addons_step_has_no_blocking_checks(self):
        assert self.validator.validate_step(WizardStep.ADDONS, CampaignConfig()).is_valid
