#!/usr/bin/env python3
"""
Demonstration of the campaign configuration engine.

Walks a film campaign through the wizard: film details and dates, platform
budget split, fee modes, add-ons, a conflict check against an in-memory
campaign list, a strategy recommendation, and the final submission payload.
"""

import asyncio
from datetime import date

from models.data_models import Addon, ExistingCampaign, FeeMode, PlanningMode, ReleaseSize, Scenario, WizardStep
from business_logic.campaign_wizard import CampaignWizard
from business_logic.conflict_detector import ConflictDetector
from business_logic.fee_calculator import summarize_fees


class DemoLookup:
    """Campaign lookup backed by a fixed list."""

    def __init__(self, campaigns):
        self.campaigns = campaigns

    async def find_active_campaigns(self, start, end, exclude_campaign_id=None):
        return [c for c in self.campaigns if c.premiere_start <= end and start <= (c.premiere_end or c.premiere_start)]


def print_result(label, result):
    status = "✓" if result.is_valid else "✗"
    print(f"   {status} {label}")
    for issue in result.issues:
        print(f"      [{issue.severity.value}] {issue.field}: {issue.message}")


async def main():
    """Demonstrate a full wizard session."""

    print("=== Film Campaign Configuration Demo ===\n")

    lookup = DemoLookup([
        ExistingCampaign(
            campaign_id="c-100",
            film_title="Night Train",
            genre="Thriller",
            premiere_start=date(2025, 3, 14),
            premiere_end=date(2025, 3, 16),
            target_audience="urban young adults",
            territory="Spain",
            platforms=["Meta"]
        )
    ])
    wizard = CampaignWizard(conflict_detector=ConflictDetector(lookup, debounce_seconds=0.1))

    print("1. Film details and release date...")
    wizard.update_film_details(
        film_title="Silent Harbour",
        genre="Thriller",
        target_audience="young adults urban",
        territory="Spain"
    )
    print_result("Release date 2025-03-12", wizard.set_release_date(date(2025, 3, 12)))
    print_result("End date on premiere Sunday", wizard.set_manual_end_date(date(2025, 3, 16)))
    print_result("End date the Monday after", wizard.set_manual_end_date(date(2025, 3, 17)))

    timeline = wizard.timeline().timeline
    print(f"   Pre-campaign: {timeline.pre_start_date} to {timeline.pre_end_date}")
    print(f"   Premiere weekend: {timeline.premiere_weekend_start} to {timeline.premiere_weekend_end}")
    print(f"   Creatives due: {timeline.creatives_deadline}, final report: {timeline.final_report_date}")

    print("\n2. Conflict check...")
    report = await wizard.check_conflicts()
    print(f"   Level: {report.level.value} (score {report.score})")
    for conflict in report.conflicts:
        print(f"   - {conflict.film_title}: {'; '.join(conflict.reasons)}")
    print_result("Leave step 1 as distributor", wizard.can_advance(WizardStep.FILM_AND_DATES))
    print_result("Leave step 1 as admin", wizard.can_advance(WizardStep.FILM_AND_DATES, is_admin=True))

    print("\n3. Strategy recommendation...")
    recommendation = wizard.recommend_strategy(ReleaseSize.MEDIUM)
    for line in recommendation.reasoning:
        print(f"   {line}")
    for scenario in recommendation.scenarios:
        print(f"   {scenario.scenario.value}: {scenario.investment.recommended:,.0f} EUR on "
              f"{', '.join(p.platform for p in scenario.platforms)} (reach {scenario.estimated_reach})")

    print("\n4. Platforms and budget...")
    wizard.set_total_investment("12000")
    for platform in ["Meta", "TikTok", "YouTube"]:
        wizard.add_platform(platform)
    print(f"   Equal split: {wizard.config.percentages}")

    print_result("Meta at 150%", wizard.set_percentage("Meta", "150"))
    wizard.set_percentage("Meta", 50)
    print_result("Percentages 50/33.33/33.34", wizard.can_advance(WizardStep.PLATFORMS_AND_BUDGET))
    wizard.set_percentage("TikTok", 25)
    wizard.set_percentage("YouTube", 25)
    print(f"   Amounts: {wizard.config.amounts}")

    wizard.set_planning_mode(PlanningMode.EQUAL_SPLIT)
    wizard.set_planning_mode(PlanningMode.PERCENTAGE)
    print(f"   Restored after equal split round trip: {wizard.config.percentages}")

    print("\n5. Fees...")
    wizard.toggle_addon(Addon.CONTENT_ADAPTATION)
    for mode in [FeeMode.ADDITIONAL, FeeMode.INTEGRATED]:
        wizard.set_fee_mode(mode)
        summary = summarize_fees(wizard.fees())
        print(f"   {mode.value}: {summary}")

    print("\n6. Submission...")
    success, payload, result = wizard.prepare_submission(is_admin=True)
    print_result("Prepare submission", result)
    if success:
        for key in ['total_estimated_amount', 'effective_ad_investment_amount', 'creatives_deadline', 'platforms']:
            print(f"   {key}: {payload[key]}")

    print("\n7. Draft round trip...")
    snapshot = wizard.serialize()
    restored = CampaignWizard()
    print_result("Restore draft", restored.restore(snapshot))
    print(f"   Same configuration: {restored.config == wizard.config}")

    print("\n8. Seeding the restored draft from the aggressive scenario...")
    print_result("Apply scenario", restored.apply_scenario(ReleaseSize.MEDIUM, Scenario.AGGRESSIVE))
    print(f"   Total: {restored.config.total_investment:,.0f}, percentages: {restored.config.percentages}")


if __name__ == "__main__":
    asyncio.run(main())
