"""Prompt builders for draft generation and finalization."""

from datetime import date

from worldschool.pathways.types import EffortMode, LearnerProfile, PathwayDraft, TripContext

DRAFTS_SYSTEM_PROMPT = """You are an expert learning pathway designer for families who learn while travelling.

Rules:
- You must return exactly 3 pathway drafts: continuous, themes, hybrid.
- Every draft must cover exactly the requested number of days.
- Drafts are lightweight outlines: headlines only, no detailed activities.
- You must output ONLY valid JSON.
"""

FINALIZE_SYSTEM_PROMPT = """You are an expert project-based learning (PBL) designer.

Rules:
- You must fill every requested day, no more and no fewer.
- Every day needs a driving question, field experience, inquiry task, artifact,
  reflection prompt, critique step and at least one schedule block.
- NO images, maps, precise addresses or sensitive personal data.
- All content must be age-appropriate.
- You must output ONLY valid JSON.
"""


def _short_date(iso_date: str) -> str:
    d = date.fromisoformat(iso_date)
    return f"{d.strftime('%b')} {d.day}"


def _join(values: list[str] | None) -> str:
    return ", ".join(values) if values else "none specified"


def _profile_summary(profile: LearnerProfile) -> str:
    pbl = profile.pbl_profile
    experiential = profile.experiential_profile
    return f"""- Name: {profile.name}
- Level: {pbl.current_level}
- Interests: {_join(pbl.interests)}
- Goals: {_join(pbl.learning_goals)}
- Preferred artifact types: {_join(pbl.preferred_artifact_types)}
- Reflection style: {experiential.reflection_style}
- Inquiry approach: {experiential.inquiry_approach}"""


def build_drafts_prompt(
    profile: LearnerProfile,
    trip: TripContext,
    day_set: tuple[str, ...],
    effort_mode: EffortMode,
) -> str:
    """Build the prompt asking for three lightweight pathway drafts."""
    num_days = len(day_set)
    dates_summary = ", ".join(f"Day {idx + 1}: {_short_date(d)}" for idx, d in enumerate(day_set))
    dates_csv = ", ".join(day_set)
    first_date = day_set[0] if day_set else ""

    return f"""Create 3 different pathway approaches for a {num_days}-day trip.

LEARNER PROFILE:
{_profile_summary(profile)}

TRIP CONTEXT:
- Title: {trip.title}
- Location: {trip.base_location}
- Selected Dates: {dates_summary}
- Effort Mode: {effort_mode.describe(num_days)}

TASK:
1. CONTINUOUS: A linear, day-by-day progression where each day builds on the previous.
2. THEMES: Organize days around distinct themes, each day exploring a different theme.
3. HYBRID: Combine continuous progression with thematic exploration.

For each draft, provide:
- title: A clear, descriptive title
- overview: 2-3 sentences describing the approach
- whyItFits: 1-2 sentences explaining why this pathway fits the learner
- days: Array of exactly {num_days} objects, each with:
  - day: Day number (1-{num_days})
  - date: The corresponding date from: {dates_csv}
  - headline: A brief, engaging headline for that day (max 60 characters)

OUTPUT FORMAT:
Return ONLY valid JSON:
{{"drafts": [{{"type": "continuous", "title": "...", "overview": "...", "whyItFits": "...",
"days": [{{"day": 1, "date": "{first_date}", "headline": "..."}}]}}, ...]}}
"""


def build_finalize_prompt(
    profile: LearnerProfile,
    trip: TripContext,
    day_set: tuple[str, ...],
    effort_mode: EffortMode,
    draft: PathwayDraft,
) -> str:
    """Build the prompt expanding the chosen draft into a detailed plan."""
    num_days = len(day_set)
    preferences = profile.preferences
    artifact_types = _join(profile.pbl_profile.preferred_artifact_types)
    dates_csv = ", ".join(day_set)
    first_date = day_set[0] if day_set else ""

    headline_lines = []
    for idx, iso_date in enumerate(day_set):
        day = draft.days[idx] if idx < len(draft.days) else None
        headline = day.headline if day else f"Day {idx + 1} activities"
        line = f"Day {idx + 1} ({_short_date(iso_date)}): {headline}"
        if day and day.summary:
            line += f"\n  Summary: {day.summary}"
        headline_lines.append(line)

    max_minutes = ""
    if profile.constraints.max_daily_minutes:
        max_minutes = f"\n- Max daily minutes: {profile.constraints.max_daily_minutes}"

    rationale = f"\n- Rationale: {draft.rationale}" if draft.rationale else ""

    return f"""Create a detailed, day-by-day learning plan.

LEARNER PROFILE:
{_profile_summary(profile)}
- Timezone: {profile.timezone}
- Preferred learning times: {_join(preferences.preferred_learning_times)}
- Preferred duration: {preferences.preferred_duration}
- Interaction style: {preferences.interaction_style}{max_minutes}

TRIP CONTEXT:
- Title: {trip.title}
- Location: {trip.base_location}
- Effort Mode: {effort_mode.describe(num_days)}

CHOSEN PATHWAY APPROACH:
- Type: {draft.type.value}
- Title: {draft.title}
- Overview: {draft.overview}
- Why It Fits: {draft.why_it_fits}{rationale}

DAY-BY-DAY HEADLINES:
{chr(10).join(headline_lines)}

TASK:
Generate a detailed {num_days}-day PBL learning pathway following the "{draft.title}" approach. Each day must include:
1. drivingQuestion: A compelling question that drives inquiry
2. fieldExperience: A real-world experience aligned to the location
3. inquiryTask: A specific task for investigation
4. artifact: What the learner will create
5. reflectionPrompt: A prompt aligned to their reflection style
6. critiqueStep: How they will get feedback and improve
7. scheduleBlocks: Array of blocks with startTime (ISO datetime in {profile.timezone}), duration (minutes), title, optional description

REQUIREMENTS:
- All {num_days} days must be filled (days 1-{num_days})
- Schedule block dates must match: {dates_csv}
- Total daily learning time should be about {effort_mode.daily_minutes(num_days)} minutes
- Field experiences should leverage the location: {trip.base_location}
- Artifacts should match preferred types: {artifact_types}

OUTPUT FORMAT:
Return ONLY valid JSON:
{{"days": [{{"day": 1, "drivingQuestion": "...", "fieldExperience": "...", "inquiryTask": "...",
"artifact": "...", "reflectionPrompt": "...", "critiqueStep": "...",
"scheduleBlocks": [{{"startTime": "{first_date}T09:00:00", "duration": 60, "title": "...", "description": "..."}}]}}],
"summary": "...", "verifyLocally": "..."}}
"""
