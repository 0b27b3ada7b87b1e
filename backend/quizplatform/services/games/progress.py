"""Per-participant progress: upserts, the answer log, completion and exit.

Every public function here commits once, so a progress record and the
instance status it implies are written together or not at all.
"""

import time
from typing import NamedTuple, Optional

from flask import current_app

from quizplatform import db
from quizplatform.errors import (
    AlreadyCompleted, Forbidden, GameError, InvalidRequest, NotAuthenticated, NotFound, TimeLimitExceeded,
)
from quizplatform.models import AnswerRecord, GameInstance, GuestParticipant, ProgressRecord, User
from .questions import is_correct


class Participant(NamedTuple):
    id: str
    name: str
    type: str  # authenticated, guest


def resolve_participant(game: GameInstance, user: Optional[User], guest_id: Optional[str] = None) -> Participant:
    """Pick the storage identity for the caller.

    A logged-in user is keyed by user id unless they explicitly act as a
    guest, and must be one of the instance's registered participants.
    Guests are keyed by the opaque id handed out at join time.
    """
    if user is not None and not guest_id:
        if user not in game.participants:
            raise Forbidden('You are not a participant in this game')
        return Participant(str(user.id), user.display_name, 'authenticated')
    if guest_id:
        guest = GuestParticipant.query.filter_by(game_id=game.id, guest_id=guest_id).first()
        if not guest:
            raise NotFound('Guest not found in this game')
        return Participant(guest.participant_id, guest.name, 'guest')
    raise NotAuthenticated('Must be authenticated or provide a guest id')


def _as_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise InvalidRequest(f'{field} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f'{field} must be an integer')
    if number != value and not isinstance(value, str):
        raise InvalidRequest(f'{field} must be an integer')
    return number


def _check_counts(questions_answered: int, total_questions: int, score: int) -> None:
    if not 0 <= score <= questions_answered <= total_questions:
        raise InvalidRequest('Expected 0 <= score <= questionsAnswered <= totalQuestions')


def get_record(game_code: str, participant_id: str) -> Optional[ProgressRecord]:
    return ProgressRecord.query.filter_by(game_code=game_code, participant_id=participant_id).first()


def _get_or_create(game_code: str, participant: Participant, total_questions: int) -> ProgressRecord:
    record = get_record(game_code, participant.id)
    if record is None:
        record = ProgressRecord(
            game_code=game_code,
            participant_id=participant.id,
            participant_name=participant.name,
            participant_type=participant.type,
            questions_answered=0,
            total_questions=total_questions,
            score=0,
            is_active=True,
            is_completed=False,
        )
        db.session.add(record)
    return record


def update_progress(game: GameInstance, participant: Participant, questions_answered,
                    total_questions, score) -> ProgressRecord:
    """Upsert the caller-reported progress. Last write wins; regressions are accepted."""
    questions_answered = _as_int(questions_answered, 'questionsAnswered')
    total_questions = _as_int(total_questions, 'totalQuestions')
    score = _as_int(score, 'score')
    _check_counts(questions_answered, total_questions, score)

    record = _get_or_create(game.code, participant, total_questions)
    if record.is_completed:
        raise AlreadyCompleted('You have already completed this game')
    record.questions_answered = questions_answered
    record.total_questions = total_questions
    record.score = score
    record.is_active = True
    record.last_updated = time.time()
    db.session.commit()
    current_app.logger.info(
        f"[progress] game={game.code} participant={participant.id} answered={questions_answered}/{total_questions} score={score}"
    )
    return record


def _check_time_limit(game: GameInstance, now: float) -> None:
    limit = game.time_limit
    if not limit or game.started_at is None:
        return
    grace = int(current_app.config.get('TIME_LIMIT_GRACE_SEC', 0))
    if now > game.started_at + limit + grace:
        raise TimeLimitExceeded()


def _answer_totals(game_code: str, participant_id: str):
    answers = AnswerRecord.query.filter_by(game_code=game_code, participant_id=participant_id).all()
    return len(answers), sum(1 for a in answers if a.is_correct)


def record_answer(game: GameInstance, participant: Participant, question_index, answer,
                  now: Optional[float] = None) -> dict:
    """Store one answer and derive the participant's progress from the answer log."""
    now = time.time() if now is None else now
    if game.status != 'active':
        raise InvalidRequest('Game is not active')
    _check_time_limit(game, now)

    question_index = _as_int(question_index, 'questionIndex')
    questions = game.questions or []
    if not 0 <= question_index < len(questions):
        raise InvalidRequest('questionIndex out of range')

    record = _get_or_create(game.code, participant, len(questions))
    if record.is_completed:
        raise AlreadyCompleted('You have already completed this game')
    existing = AnswerRecord.query.filter_by(
        game_code=game.code, participant_id=participant.id, question_index=question_index
    ).first()
    if existing:
        raise GameError('Question already answered', 409)

    correct = is_correct(questions[question_index], answer)
    db.session.add(AnswerRecord(
        game_code=game.code,
        participant_id=participant.id,
        question_index=question_index,
        answer=answer,
        is_correct=correct,
        submitted_at=now,
    ))
    db.session.flush()

    answered, score = _answer_totals(game.code, participant.id)
    record.questions_answered = answered
    record.total_questions = len(questions)
    record.score = score
    record.is_active = True
    record.last_updated = now
    db.session.commit()
    current_app.logger.info(
        f"[answer] game={game.code} participant={participant.id} q={question_index} correct={correct} answered={answered}/{len(questions)}"
    )
    return {'correct': correct, 'questionsAnswered': answered, 'totalQuestions': len(questions), 'score': score}


def _resolve_instance_completion(game: GameInstance) -> None:
    """Single-player instances finish with their player; multiplayer ones once
    every registered participant has a completed record."""
    if game.status == 'completed':
        return
    if not game.is_multiplayer:
        game.status = 'completed'
        return
    db.session.flush()
    completed = ProgressRecord.query.filter_by(game_code=game.code, is_completed=True).count()
    if completed >= game.participant_count:
        game.status = 'completed'


def complete_participant(game: GameInstance, participant: Participant, final_score, total_questions,
                         completed_at=None) -> ProgressRecord:
    answered, score = _answer_totals(game.code, participant.id)
    if answered:
        total_questions = len(game.questions or []) or answered
    else:
        total_questions = _as_int(total_questions, 'totalQuestions')
        score = _as_int(final_score, 'finalScore')
        answered = total_questions
        _check_counts(answered, total_questions, score)

    record = _get_or_create(game.code, participant, total_questions)
    record.questions_answered = answered
    record.total_questions = total_questions
    record.score = score
    record.is_active = False
    record.is_completed = True
    record.last_updated = float(completed_at) if completed_at is not None else time.time()
    _resolve_instance_completion(game)
    db.session.commit()
    current_app.logger.info(
        f"[complete] game={game.code} participant={participant.id} score={score}/{total_questions} status={game.status}"
    )
    return record


def exit_game(game: GameInstance, participant: Participant) -> ProgressRecord:
    """Leave without finishing. The record counts as completed, so rejoining is refused."""
    record = _get_or_create(game.code, participant, len(game.questions or []))
    record.is_active = False
    record.is_completed = True
    record.last_updated = time.time()
    _resolve_instance_completion(game)
    db.session.commit()
    current_app.logger.info(
        f"[exit] game={game.code} participant={participant.id} answered={record.questions_answered} status={game.status}"
    )
    return record
