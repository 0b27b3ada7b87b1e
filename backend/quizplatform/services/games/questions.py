import random
from typing import Any, Dict, List, Optional

from quizplatform.errors import InvalidRequest

DEFAULT_QUESTION_COUNT = 10
MAX_QUESTION_COUNT = 50
MIN_TIME_LIMIT_SEC = 10
MAX_TIME_LIMIT_SEC = 3600


def _math_question(qid: int, rng: random.Random) -> Dict[str, Any]:
    num1 = rng.randint(1, 50)
    num2 = rng.randint(1, 30)
    operation = '+' if rng.random() > 0.5 else '-'
    # Subtraction never goes negative
    if operation == '-' and num1 < num2:
        num1, num2 = num2, num1
    answer = num1 + num2 if operation == '+' else num1 - num2
    return {'id': qid, 'question': f"{num1} {operation} {num2}", 'answer': answer}


def generate_math_questions(count: int, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    rng = rng or random.Random()
    return [_math_question(i + 1, rng) for i in range(count)]


def _custom_math_questions(items) -> List[Dict[str, Any]]:
    questions = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or 'question' not in item or 'answer' not in item:
            raise InvalidRequest(f'Question {index + 1} is invalid')
        questions.append({'id': index + 1, 'question': str(item['question']), 'answer': item['answer']})
    return questions


def validate_mcq_questions(items) -> List[Dict[str, Any]]:
    """Check an MCQ list and renumber it. Raises InvalidRequest on the first bad entry."""
    if not isinstance(items, list) or not items:
        raise InvalidRequest('Questions are required')
    questions = []
    for index, q in enumerate(items):
        if not isinstance(q, dict) or not isinstance(q.get('question'), str) or not q['question'].strip():
            raise InvalidRequest(f'Question {index + 1} is invalid')
        options = q.get('options')
        if not isinstance(options, list) or len(options) != 4:
            raise InvalidRequest(f'Question {index + 1} must have exactly 4 options')
        correct = q.get('correctAnswer')
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct <= 3:
            raise InvalidRequest(f'Question {index + 1} has invalid correctAnswer')
        questions.append({
            'id': index + 1,
            'question': q['question'],
            'options': [str(o) for o in options],
            'correctAnswer': correct,
        })
    return questions


def _question_count(config: Dict[str, Any]) -> int:
    raw = config.get('questionCount', DEFAULT_QUESTION_COUNT)
    try:
        count = int(raw)
    except (TypeError, ValueError):
        raise InvalidRequest('questionCount must be a number')
    if not 1 <= count <= MAX_QUESTION_COUNT:
        raise InvalidRequest(f'questionCount must be between 1 and {MAX_QUESTION_COUNT}')
    return count


def validate_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise InvalidRequest('customConfig must be an object')
    if config.get('timeLimit') is not None:
        try:
            limit = int(config['timeLimit'])
        except (TypeError, ValueError):
            raise InvalidRequest('timeLimit must be a number')
        if not MIN_TIME_LIMIT_SEC <= limit <= MAX_TIME_LIMIT_SEC:
            raise InvalidRequest(
                f'timeLimit must be between {MIN_TIME_LIMIT_SEC} and {MAX_TIME_LIMIT_SEC} seconds'
            )
    return config


def generate_questions(game_kind: str, config: Optional[Dict[str, Any]] = None,
                       rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Build the fixed question set for a new instance of ``game_kind``."""
    config = validate_config(config)
    if game_kind == 'ai-mcq-quiz':
        return validate_mcq_questions(config.get('questions'))
    if game_kind == 'multi-player-math':
        return generate_math_questions(DEFAULT_QUESTION_COUNT, rng)
    if game_kind in ('custom-math-quiz', 'custom-math-race') and isinstance(config.get('questions'), list):
        return _custom_math_questions(config['questions'])
    return generate_math_questions(_question_count(config), rng)


def is_correct(question: Dict[str, Any], answer) -> bool:
    """MCQ answers are option indexes; math answers compare numerically.

    Booleans never count as numbers, and an MCQ index must be a whole number.
    """
    if isinstance(answer, bool):
        return False
    if 'correctAnswer' in question:
        if isinstance(answer, str) and answer.strip().isdigit():
            answer = int(answer)
        return isinstance(answer, int) and answer == question['correctAnswer']
    expected = question.get('answer')
    try:
        return float(answer) == float(expected)
    except (TypeError, ValueError):
        return str(answer).strip() == str(expected).strip()


def public_questions(questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Questions as shown to players: no answer key."""
    hidden = ('answer', 'correctAnswer')
    return [{k: v for k, v in q.items() if k not in hidden} for q in questions]
