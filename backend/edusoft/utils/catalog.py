"""Default questionnaire catalog seeded into an empty database."""

_LIKERT_AGREEMENT = [
    {"text": "Strongly disagree", "score": 1},
    {"text": "Disagree", "score": 2},
    {"text": "Neutral", "score": 3},
    {"text": "Agree", "score": 4},
    {"text": "Strongly agree", "score": 5},
]

_LIKERT_FREQUENCY = [
    {"text": "Rarely or never", "score": 1},
    {"text": "Occasionally", "score": 2},
    {"text": "Sometimes", "score": 3},
    {"text": "Often", "score": 4},
    {"text": "Always", "score": 5},
]

_LIKERT_COMFORT = [
    {"text": "Very uncomfortable", "score": 1},
    {"text": "Somewhat uncomfortable", "score": 2},
    {"text": "Neutral", "score": 3},
    {"text": "Somewhat comfortable", "score": 4},
    {"text": "Very comfortable", "score": 5},
]


def _questions(items):
    return [
        {"question_number": i, "question_text": text, "options": [dict(o) for o in options]}
        for i, (text, options) in enumerate(items, start=1)
    ]


DEFAULT_ASSESSMENTS = [
    {
        "title": "Leadership Skill Assessment",
        "description": "Evaluate your leadership abilities and identify areas for improvement.",
        "category": "leadership",
        "duration": 30,
        "questions": _questions([
            ("How often do you take initiative in group projects?", _LIKERT_FREQUENCY),
            ("How comfortable are you with making decisions that affect others?", _LIKERT_COMFORT),
            ("I give team members clear feedback on their work.", _LIKERT_AGREEMENT),
            ("I delegate tasks according to people's strengths.", _LIKERT_AGREEMENT),
            ("How often do you help resolve conflicts within your team?", _LIKERT_FREQUENCY),
        ]),
    },
    {
        "title": "Problem Solving Skill Assessment",
        "description": "Test your ability to analyze situations and develop effective solutions.",
        "category": "problem-solving",
        "duration": 45,
        "questions": [],
    },
    {
        "title": "Presentation Skill Assessment",
        "description": "Assess your public speaking and presentation capabilities.",
        "category": "presentation",
        "duration": 30,
        "questions": [],
    },
    {
        "title": "Team Work Skill Assessment",
        "description": "Evaluate your ability to collaborate and work effectively in a team.",
        "category": "teamwork",
        "duration": 40,
        "questions": [],
    },
    {
        "title": "Adaptability and Flexibility Skill Assessment",
        "description": "Measure your capacity to adapt to changing circumstances and environments.",
        "category": "adaptability",
        "duration": 35,
        "questions": [],
    },
    {
        "title": "Communication Skill Assessment",
        "description": "Assess your verbal and written communication effectiveness.",
        "category": "communication",
        "duration": 40,
        "questions": [],
    },
]
