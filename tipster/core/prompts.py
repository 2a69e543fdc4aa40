"""Prompts sent to every model in a batch round."""

from tipster.core.models import MatchContext

SYSTEM_PROMPT = """You are a football match score predictor. Predict the final score of each match you are given.

IMPORTANT: Respond with ONLY valid JSON in this exact format:
{"predictions": [{"match_id": "<match id>", "home_score": <integer>, "away_score": <integer>}]}

Rules:
- match_id must be copied exactly from the request
- home_score and away_score must be whole numbers between 0 and 20
- Do not include any explanation, reasoning or markdown formatting
- Respond in English only"""


def build_user_prompt(context: MatchContext) -> str:
    """Render the per-match user prompt."""
    lines = [
        "Predict the final score for this football match:",
        "",
        f"Match ID: {context.match_id}",
        f"Home Team: {context.home_team}",
        f"Away Team: {context.away_team}",
        f"Competition: {context.competition}",
    ]
    if context.kickoff:
        lines.append(f"Kickoff: {context.kickoff}")
    if context.analysis:
        lines.extend(["", "Pre-match analysis:", context.analysis.strip()])
    lines.extend(
        [
            "",
            "Consider team strength, recent form, and head-to-head history.",
            "",
            "Respond with ONLY the JSON prediction:",
        ]
    )
    return "\n".join(lines)
