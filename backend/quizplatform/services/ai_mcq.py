"""Multiple-choice question generation through OpenRouter."""

import json

import requests
from flask import current_app

from quizplatform.errors import ExternalServiceError, InvalidRequest, ServiceUnavailable
from quizplatform.services.games.questions import validate_mcq_questions

OPENROUTER_URL = 'https://openrouter.ai/api/v1/chat/completions'
MIN_DIFFICULTY, MAX_DIFFICULTY = 1, 20
MIN_QUESTIONS, MAX_QUESTIONS = 5, 20


def system_prompt() -> str:
    return (
        "You are an expert educational content creator specializing in generating high-quality "
        "multiple-choice questions (MCQs).\n\n"
        "Your task is to generate MCQs that are:\n"
        "1. Academically rigorous and appropriate for the specified difficulty level\n"
        "2. Clear, unambiguous, and well-structured\n"
        "3. Educational and designed to test understanding, not just memorization\n"
        "4. Free from cultural bias or offensive content\n\n"
        "You can use LaTeX formatting for mathematical expressions. Use $ for inline math and $$ for display math.\n\n"
        "IMPORTANT: You MUST respond ONLY with valid JSON in the exact format specified."
    )


def difficulty_description(level: int) -> str:
    if 1 <= level <= 5:
        return (f"elementary school (grade {level}, ages {5 + level}-{6 + level}). "
                "Questions should use simple vocabulary and concepts appropriate for young children.")
    if 6 <= level <= 8:
        return (f"middle school (grade {level}, ages {10 + level}-{11 + level}). "
                "Questions should introduce more complex concepts while remaining accessible.")
    if 9 <= level <= 12:
        return (f"high school (grade {level}, ages {13 + level}-{14 + level}). "
                "Questions should be challenging and prepare students for higher education.")
    if 13 <= level <= 16:
        return (f"university level (year {level - 12}). "
                "Questions should be academically rigorous, testing deep understanding and application of concepts.")
    if 17 <= level <= 18:
        return ("graduate/masters level. Questions should require advanced knowledge, "
                "critical thinking, and synthesis of complex ideas.")
    if 19 <= level <= 20:
        return ("postdoctoral/expert level. Questions should be at the cutting edge of the field, "
                "suitable for researchers and domain experts.")
    return 'appropriate difficulty level'


def user_prompt(ai_prompt: str, difficulty: int, count: int, language: str = 'English') -> str:
    return (
        f"Generate exactly {count} multiple-choice questions based on the following instructions "
        f"at difficulty level {difficulty}/20.\n\n"
        f"User Instructions: {ai_prompt}\n\n"
        f"Difficulty level context: This is {difficulty_description(difficulty)}\n\n"
        f"Language Requirement: The questions and answers MUST be in {language}. However, the JSON keys "
        "(question, options, correctAnswer) MUST remain in English.\n\n"
        "Requirements for each question:\n"
        "- Must have exactly 4 answer options (A, B, C, D)\n"
        "- Only ONE option should be correct\n"
        "- All incorrect options should be plausible but clearly wrong\n"
        "- Follow the user's instructions about what content to cover\n\n"
        "Return ONLY valid JSON in this EXACT format:\n"
        '{"questions": [{"question": "...", "options": ["A", "B", "C", "D"], "correctAnswer": 0}]}\n\n'
        'The "correctAnswer" field must be an integer from 0-3 (0 for A, 1 for B, 2 for C, 3 for D).'
    )


def parse_ai_json(content: str):
    """Parse a model reply, tolerating a surrounding markdown code fence."""
    text = content.strip()
    if text.startswith('```'):
        lines = text.split('\n')
        if lines[0].strip() in ('```', '```json'):
            lines = lines[1:]
        if lines and lines[-1].strip() == '```':
            lines = lines[:-1]
        text = '\n'.join(lines)
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ExternalServiceError(f'Failed to parse AI response as JSON: {exc}')


def call_openrouter(api_key: str, model: str, messages, temperature=0.7, max_tokens=2500) -> str:
    cfg = current_app.config
    try:
        response = requests.post(
            OPENROUTER_URL,
            json={'model': model, 'messages': messages, 'temperature': temperature, 'max_tokens': max_tokens},
            headers={
                'Authorization': f'Bearer {api_key}',
                'HTTP-Referer': cfg.get('APP_DOMAIN', 'http://localhost:3000'),
                'X-Title': 'Game Platform - AI MCQ Generator',
            },
            timeout=cfg.get('AI_REQUEST_TIMEOUT_SEC', 60),
        )
    except requests.RequestException as exc:
        raise ExternalServiceError(f'OpenRouter API error: {exc}')
    if response.status_code >= 400:
        raise ExternalServiceError(f'OpenRouter API error: {response.status_code} - {response.text}')
    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalServiceError(f'OpenRouter API returned invalid JSON: {exc}')
    choices = data.get('choices') or []
    if not choices:
        raise ExternalServiceError('No response from OpenRouter API')
    return choices[0]['message']['content']


def _check_range(value, low, high, message):
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise InvalidRequest(message)
    return value


def generate_mcq(ai_prompt: str, difficulty, count, language: str = 'English'):
    if not ai_prompt or not str(ai_prompt).strip():
        raise InvalidRequest('AI prompt is required')
    difficulty = _check_range(difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY,
                              f'Difficulty level must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}')
    count = _check_range(count, MIN_QUESTIONS, MAX_QUESTIONS,
                         f'Question count must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}')

    cfg = current_app.config
    api_key = cfg.get('OPENROUTER_API_KEY')
    if not api_key:
        current_app.logger.error("[ai] OPENROUTER_API_KEY not configured")
        raise ServiceUnavailable('AI service not configured')
    model = cfg.get('AI_MCQ_MODEL')

    current_app.logger.info(f"[ai] generate model={model} difficulty={difficulty} count={count} language={language}")
    content = call_openrouter(api_key, model, [
        {'role': 'system', 'content': system_prompt()},
        {'role': 'user', 'content': user_prompt(ai_prompt.strip(), difficulty, count, language)},
    ])
    data = parse_ai_json(content)
    if not isinstance(data, dict) or not isinstance(data.get('questions'), list):
        raise ExternalServiceError('Invalid AI response: missing questions array')
    try:
        questions = validate_mcq_questions(data['questions'])
    except InvalidRequest as exc:
        raise ExternalServiceError(f'Invalid AI response: {exc.message}')
    current_app.logger.info(f"[ai] generated {len(questions)} questions")
    return questions
