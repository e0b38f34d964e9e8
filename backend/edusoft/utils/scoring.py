"""Pure scoring helpers used by the assessment services.

Nothing here touches the database; functions raise ValueError on
malformed input so services can report it as a 400.
"""

from typing import Dict, List, Optional, Tuple

# (max minutes, score) bands for puzzle completion time
PUZZLE_TIME_BANDS = [(1, 100), (2, 85), (3, 70), (4, 50)]
PUZZLE_SLOW_SCORE = 30

RATINGS = [(100, "Excellent"), (85, "Very Good"), (70, "Good"), (50, "Fair")]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def average_criteria(criteria: List[dict]) -> float:
    """Mean of the numeric `score` values, rounded to one decimal (0 if none)."""
    scores = [c.get('score') for c in criteria or [] if _is_number(c.get('score'))]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


def quiz_percentage(correct: int, total: int) -> float:
    if total <= 0:
        raise ValueError('total_questions must be greater than 0')
    if correct < 0 or correct > total:
        raise ValueError('correct_answers must be between 0 and total_questions')
    return round(correct / total * 100, 1)


def rating_for_score(score: float) -> str:
    if score <= 0:
        return "Incomplete"
    for threshold, label in RATINGS:
        if score >= threshold:
            return label
    return "Poor"


def score_puzzle_run(puzzles: List[dict]) -> Tuple[float, str, Dict]:
    """Score one puzzle-game session.

    A numeric `score` reported for a completed puzzle wins (the last one
    seen). Otherwise the total time spent on completed puzzles, in
    minutes, is mapped through `PUZZLE_TIME_BANDS`. A session without any
    completed puzzle scores 0.
    """
    if not puzzles:
        raise ValueError('puzzles must not be empty')
    completed = [p for p in puzzles if p.get('completed')]
    total_moves = sum(int(p.get('moves') or 0) for p in puzzles)
    total_time = sum(float(p.get('time_taken') or 0) for p in completed)
    minutes = total_time / 60.0

    reported: Optional[float] = None
    for p in completed:
        if _is_number(p.get('score')):
            reported = float(p['score'])
    if reported is not None:
        if reported < 0 or reported > 100:
            raise ValueError('puzzle score must be between 0 and 100')
        score = reported
    elif not completed:
        score = 0.0
    else:
        score = float(PUZZLE_SLOW_SCORE)
        for limit, band_score in PUZZLE_TIME_BANDS:
            if minutes <= limit:
                score = float(band_score)
                break
    details = {
        'completed_puzzles': len(completed),
        'total_puzzles': len(puzzles),
        'total_moves': total_moves,
        'total_time': total_time,
        'completion_time_minutes': round(minutes, 2),
        'percentage': score,
    }
    return score, rating_for_score(score), details


def score_questionnaire(questions: List[dict], answers: List[dict]) -> Tuple[float, List[dict]]:
    """Score Likert-style answers against catalog questions.

    Every question must be answered exactly once by `option_index`. The
    result is the share of the maximum attainable score, as a percentage
    rounded to one decimal, plus per-question details.
    """
    if not questions:
        raise ValueError('assessment has no questions')
    by_number = {q['question_number']: q for q in questions}
    seen = set()
    items = []
    total = 0.0
    maximum = 0.0
    for a in answers:
        qnum = a.get('question_number')
        q = by_number.get(qnum)
        if q is None:
            raise ValueError(f'unknown question_number: {qnum}')
        if qnum in seen:
            raise ValueError(f'question answered twice: {qnum}')
        seen.add(qnum)
        options = q.get('options') or []
        idx = a.get('option_index')
        if not isinstance(idx, int) or idx < 0 or idx >= len(options):
            raise ValueError(f'invalid option_index for question {qnum}')
        chosen = options[idx]
        total += float(chosen.get('score') or 0)
        maximum += max(float(o.get('score') or 0) for o in options)
        items.append({'question_number': qnum, 'option_index': idx, 'answer': chosen.get('text'), 'score': chosen.get('score')})
    missing = sorted(set(by_number) - seen)
    if missing:
        raise ValueError(f'unanswered questions: {missing}')
    if maximum <= 0:
        raise ValueError('assessment options carry no score')
    return round(total / maximum * 100, 1), items
