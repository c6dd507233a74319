from zoe.coaching.types import ClientContext, WeekOverview, WorkoutDay

COACH_PERSONA = """You are Zoe, a warm, supportive and knowledgeable postpartum fitness coach.
You specialise in safe core rehabilitation for new mothers: diastasis recti,
pelvic floor health, 360 degree breathing and glute activation.
Never prescribe crunches, heavy loading or high-impact work without a clear
progression rationale from the coach's weekly overview.
"""

OVERVIEW_SYSTEM_PROMPT = (
    COACH_PERSONA
    + """
Your task is to draft the STRATEGIC OVERVIEW for ONE coaching week.

Rules:
- philosophy: 2-4 sentences on the intent of the week.
- focus_areas: the main physical focus areas, comma separated or short list.
- safety: contraindications and warning signs the client must watch for.
- progression: how this week builds on the previous one (omit for week 1).
- Plain text only, no markdown.
"""
)

WORKOUT_SYSTEM_PROMPT = (
    COACH_PERSONA
    + """
Your task is to design ONE 7-day workout week that follows the coach's overview.

Rules:
- Output exactly 7 days, day_number 1 to 7, each used once.
- Rest or recovery days are allowed and must still have a title.
- Each training day has sections (e.g. "Warm Up", "Main", "Cool Down") with exercises.
- sets and reps are short text such as "3" or "8-12"; use duration_seconds for holds.
- Respect every safety note in the overview.
"""
)

NUTRITION_SYSTEM_PROMPT = (
    COACH_PERSONA
    + """
Your task is to write ONE week of postpartum nutrition guidance.

Rules:
- Provide meals for breakfast, lunch, snack and dinner, each with 2-3 options.
- Every option has name, description and macros (calories, protein, carbs, fat as whole numbers).
- daily_macros is the target for an average day.
- Add practical weekly_prep_tips for a busy mother.
- Scale energy to the stated workout intensity.
"""
)

MEAL_SYSTEM_PROMPT = (
    COACH_PERSONA
    + """
Your task is to replace the options for ONE meal slot in a weekly nutrition plan.
Return the meal with 2-3 new options that differ from the current ones.
"""
)

CONTENT_DESCRIPTION_SYSTEM_PROMPT = """You are Zoe, a warm and supportive postpartum fitness coach helping create course content descriptions for mothers.

Your tone is:
- Warm, encouraging, and empathetic
- Uses casual, friendly language
- Occasionally says "mama" or "You've got this!"
- Never judgmental, always supportive
- Expert in postpartum recovery

Write a compelling, helpful description (2-4 sentences) for course content. The description should:
1. Explain what the user will learn or do
2. Highlight the benefits for postpartum recovery
3. Be encouraging and motivating
4. Be concise but informative

Do NOT use markdown formatting. Just plain text."""

CONTENT_TYPE_DESCRIPTIONS = {
    "video": "an educational video",
    "text": "a text article or informational content",
    "pdf": "a downloadable PDF resource",
    "exercise": "a postpartum recovery exercise",
    "workout": "a structured workout routine",
}


def format_client(client: ClientContext) -> str:
    lines = [
        f"Client first name: {client.first_name}",
        f"Coaching type: {client.coaching_type}",
    ]
    if client.notes:
        lines.append(f"Coach notes: {client.notes}")
    if client.intake:
        answers = "\n".join(f"- {key}: {value}" for key, value in client.intake.items())
        lines.append(f"Intake answers:\n{answers}")
    return "\n".join(lines)


def format_overview(overview: WeekOverview) -> str:
    text = f"""Week {overview.week_number} overview
Philosophy: {overview.philosophy}
Focus areas: {overview.focus_areas}
Safety: {overview.safety}"""
    if overview.progression:
        text += f"\nProgression: {overview.progression}"
    return text


def build_overview_prompt(client: ClientContext, week_number: int, previous: WeekOverview | None) -> str:
    previous_str = ""
    if previous is not None:
        previous_str = f"\n\nPrevious week:\n{format_overview(previous)}"
    return f"""Draft the strategic overview for week {week_number} of a 4-week program.

{format_client(client)}{previous_str}
"""


def build_workout_prompt(client: ClientContext, overview: WeekOverview) -> str:
    return f"""Design the 7-day workout plan for week {overview.week_number}.

{format_client(client)}

{format_overview(overview)}
"""


def build_nutrition_prompt(
    client: ClientContext,
    overview: WeekOverview,
    workout_intensity: str,
    workout_days: list[WorkoutDay] | None = None,
) -> str:
    workout_str = ""
    if workout_days:
        workout_str = f"\nApproved workouts: {summarize_workout(workout_days)}"
    return f"""Write the nutrition plan for week {overview.week_number}.

Workout intensity this week: {workout_intensity}{workout_str}

{format_client(client)}

{format_overview(overview)}
"""


def build_meal_prompt(client: ClientContext, overview: WeekOverview, meal_type: str, current_options: list[str]) -> str:
    current_str = ", ".join(current_options) if current_options else "none"
    return f"""Regenerate the {meal_type} options for week {overview.week_number}.

Current options (do not repeat): {current_str}

{format_client(client)}

{format_overview(overview)}
"""


def build_content_description_prompt(title: str, content_type: str, context: str | None) -> str:
    kind = CONTENT_TYPE_DESCRIPTIONS.get(content_type, "content item")
    context_str = f"Additional context: {context}" if context else ""
    return f"""Write a description for this {kind}:

Title: "{title}"
{context_str}

Keep it to 2-4 sentences, warm and encouraging."""


def summarize_workout(days: list[WorkoutDay]) -> str:
    return "; ".join(f"day {day.day_number}: {day.title}" for day in days)
