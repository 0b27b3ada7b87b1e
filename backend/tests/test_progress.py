import pytest

from quizplatform.errors import TimeLimitExceeded
from quizplatform.models import ProgressRecord
from quizplatform.services.games import instances, progress
from quizplatform.services.games.questions import is_correct


def _hosted_game(teacher_client, game_id='multi-player-math', custom_config=None):
    body = {'gameId': game_id}
    if custom_config:
        body['customConfig'] = custom_config
    return teacher_client.post('/api/games/create', json=body).get_json()['code']


def _guest(client, code, name):
    return client.post(f'/api/games/{code}/join-guest', json={'guestName': name}).get_json()['guestId']


def _post_progress(client, code, guest_id, answered, total, score):
    return client.post(f'/api/games/{code}/progress', json={
        'guestId': guest_id,
        'questionsAnswered': answered,
        'totalQuestions': total,
        'score': score,
    })


def test_progress_upsert_is_idempotent(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')

    for _ in range(3):
        res = _post_progress(client, code, guest_id, 3, 10, 2)
        assert res.status_code == 200
    assert ProgressRecord.query.filter_by(game_code=code).count() == 1

    # regressions are accepted, last write wins
    data = _post_progress(client, code, guest_id, 1, 10, 1).get_json()['progress']
    assert data['questionsAnswered'] == 1
    assert data['participantId'] == f'guest:{guest_id}'
    assert data['participantName'] == 'Ana'
    assert data['participantType'] == 'guest'
    assert data['isActive'] is True


def test_progress_bounds(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')
    assert _post_progress(client, code, guest_id, 3, 10, 4).status_code == 400
    assert _post_progress(client, code, guest_id, 11, 10, 4).status_code == 400
    assert _post_progress(client, code, guest_id, -1, 10, 0).status_code == 400
    assert _post_progress(client, code, guest_id, 'three', 10, 0).status_code == 400
    assert ProgressRecord.query.filter_by(game_code=code).count() == 0


def test_progress_identity(teacher, student, client):
    teacher_client, _ = teacher
    student_client, user = student
    code = _hosted_game(teacher_client)

    res = _post_progress(client, code, None, 1, 10, 1)
    assert res.status_code == 401
    assert _post_progress(client, code, 'not-a-guest', 1, 10, 1).status_code == 404

    student_client.post(f'/api/games/{code}/join')
    data = _post_progress(student_client, code, None, 2, 10, 2).get_json()['progress']
    assert data['participantId'] == str(user.id)
    assert data['participantType'] == 'authenticated'


def test_answers_are_scored_on_the_server(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')
    questions = instances.get_instance(code).questions

    # answers are refused until the host starts the game
    res = client.post(f'/api/games/{code}/answers', json={'guestId': guest_id, 'questionIndex': 0, 'answer': 1})
    assert res.status_code == 400

    teacher_client.post(f'/api/games/{code}/start')
    res = client.post(f'/api/games/{code}/answers', json={
        'guestId': guest_id, 'questionIndex': 0, 'answer': questions[0]['answer'],
    })
    assert res.status_code == 200
    assert res.get_json() == {'correct': True, 'questionsAnswered': 1, 'totalQuestions': 10, 'score': 1}

    res = client.post(f'/api/games/{code}/answers', json={
        'guestId': guest_id, 'questionIndex': 1, 'answer': questions[1]['answer'] + 1,
    })
    assert res.get_json() == {'correct': False, 'questionsAnswered': 2, 'totalQuestions': 10, 'score': 1}

    res = client.post(f'/api/games/{code}/answers', json={
        'guestId': guest_id, 'questionIndex': 1, 'answer': questions[1]['answer'],
    })
    assert res.status_code == 409
    assert res.get_json()['error'] == 'Question already answered'

    assert client.post(f'/api/games/{code}/answers', json={'guestId': guest_id, 'questionIndex': 10}).status_code == 400
    assert client.post(f'/api/games/{code}/answers', json={'guestId': guest_id}).status_code == 400


def test_mcq_answers_use_option_index(teacher, client):
    teacher_client, _ = teacher
    questions = [
        {'question': 'What is 2 + 2?', 'options': ['3', '4', '5', '6'], 'correctAnswer': 1},
    ]
    code = _hosted_game(teacher_client, 'ai-mcq-quiz', {'questions': questions})
    guest_id = _guest(client, code, 'Ana')
    teacher_client.post(f'/api/games/{code}/start')
    res = client.post(f'/api/games/{code}/answers', json={'guestId': guest_id, 'questionIndex': 0, 'answer': 1})
    assert res.get_json()['correct'] is True


def test_answers_after_time_limit(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client, 'custom-math-race', {'timeLimit': 30})
    guest_id = _guest(client, code, 'Ana')
    teacher_client.post(f'/api/games/{code}/start')

    game = instances.get_instance(code)
    participant = progress.resolve_participant(game, None, guest_id)
    answer = game.questions[0]['answer']

    result = progress.record_answer(game, participant, 0, answer, now=game.started_at + 29)
    assert result['score'] == 1
    with pytest.raises(TimeLimitExceeded):
        progress.record_answer(game, participant, 1, answer, now=game.started_at + 31)


def test_complete_with_answer_log_ignores_reported_score(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')
    _guest(client, code, 'Ben')
    teacher_client.post(f'/api/games/{code}/start')
    questions = instances.get_instance(code).questions

    client.post(f'/api/games/{code}/answers', json={
        'guestId': guest_id, 'questionIndex': 0, 'answer': questions[0]['answer'],
    })
    res = client.post(f'/api/games/{code}/complete', json={
        'guestId': guest_id, 'finalScore': 10, 'totalQuestions': 10,
    })
    assert res.status_code == 200
    data = res.get_json()['progress']
    assert data['score'] == 1
    assert data['questionsAnswered'] == 1
    assert data['totalQuestions'] == 10
    assert data['isCompleted'] is True
    assert data['isActive'] is False


def test_multiplayer_completes_when_everyone_finishes(teacher, student, client):
    teacher_client, _ = teacher
    student_client, _ = student
    code = _hosted_game(teacher_client)
    ana = _guest(client, code, 'Ana')
    ben = _guest(client, code, 'Ben')
    student_client.post(f'/api/games/{code}/join')
    teacher_client.post(f'/api/games/{code}/start')

    body = {'finalScore': 7, 'totalQuestions': 10}
    res = client.post(f'/api/games/{code}/complete', json=dict(body, guestId=ana))
    assert res.get_json()['gameStatus'] == 'active'
    res = client.post(f'/api/games/{code}/complete', json=dict(body, guestId=ben))
    assert res.get_json()['gameStatus'] == 'active'
    res = student_client.post(f'/api/games/{code}/complete', json=body)
    assert res.get_json()['gameStatus'] == 'completed'
    assert teacher_client.get(f'/api/games/{code}').get_json()['status'] == 'completed'

    # finished games take no more players or progress
    assert client.post(f'/api/games/{code}/join-guest', json={'guestName': 'Cy'}).status_code == 409
    assert _post_progress(client, code, ana, 8, 10, 8).status_code == 409


def test_complete_rejects_bad_score(teacher, client):
    teacher_client, _ = teacher
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')
    res = client.post(f'/api/games/{code}/complete', json={'guestId': guest_id, 'finalScore': 11, 'totalQuestions': 10})
    assert res.status_code == 400


def test_single_player_completes_immediately(student):
    student_client, _ = student
    code = student_client.post('/api/games/create', json={'gameId': 'single-player-math'}).get_json()['code']
    student_client.post(f'/api/games/{code}/start')
    res = student_client.post(f'/api/games/{code}/complete', json={'finalScore': 7, 'totalQuestions': 10})
    assert res.status_code == 200
    data = res.get_json()
    assert data['gameStatus'] == 'completed'
    assert data['progress']['score'] == 7


def test_exit_blocks_rejoin(teacher, student, client):
    teacher_client, _ = teacher
    student_client, _ = student
    code = _hosted_game(teacher_client)
    guest_id = _guest(client, code, 'Ana')
    _guest(client, code, 'Ben')
    student_client.post(f'/api/games/{code}/join')

    res = student_client.post(f'/api/games/{code}/exit')
    assert res.status_code == 200
    assert res.get_json()['gameStatus'] == 'waiting'
    res = student_client.post(f'/api/games/{code}/join')
    assert res.status_code == 409
    assert res.get_json()['error'] == 'You have already completed this game'

    client.post(f'/api/games/{code}/exit', json={'guestId': guest_id})
    res = client.post(f'/api/games/{code}/join-guest', json={'guestId': guest_id})
    assert res.status_code == 409


def test_outsider_cannot_complete_multiplayer(teacher, login_client, client):
    teacher_client, _ = teacher
    outsider, _ = login_client('outsider@example.com')
    code = _hosted_game(teacher_client)
    guests = [_guest(client, code, name) for name in ('P1', 'P2', 'P3')]
    teacher_client.post(f'/api/games/{code}/start')

    body = {'finalScore': 5, 'totalQuestions': 10}
    res = outsider.post(f'/api/games/{code}/complete', json=body)
    assert res.status_code == 403
    assert res.get_json()['error'] == 'You are not a participant in this game'
    assert outsider.post(f'/api/games/{code}/progress', json={
        'questionsAnswered': 1, 'totalQuestions': 10, 'score': 1,
    }).status_code == 403

    for guest_id in guests[:2]:
        res = client.post(f'/api/games/{code}/complete', json=dict(body, guestId=guest_id))
        assert res.get_json()['gameStatus'] == 'active'
    res = client.post(f'/api/games/{code}/complete', json=dict(body, guestId=guests[2]))
    assert res.get_json()['gameStatus'] == 'completed'


def test_outsider_cannot_exit_single_player(student, login_client):
    student_client, _ = student
    outsider, _ = login_client('outsider@example.com')
    code = student_client.post('/api/games/create', json={'gameId': 'single-player-math'}).get_json()['code']
    student_client.post(f'/api/games/{code}/start')

    assert outsider.post(f'/api/games/{code}/exit').status_code == 403
    assert outsider.post(f'/api/games/{code}/complete', json={'finalScore': 1, 'totalQuestions': 10}).status_code == 403
    assert student_client.get(f'/api/games/{code}').get_json()['status'] == 'active'
    assert ProgressRecord.query.filter_by(game_code=code).count() == 0


def test_is_correct_rejects_bools_and_fractional_indexes():
    mcq = {'question': 'Pick', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': 1}
    assert is_correct(mcq, 1)
    assert is_correct(mcq, '1')
    assert not is_correct(mcq, 1.9)
    assert not is_correct(mcq, True)

    math = {'question': '3 - 2', 'answer': 1}
    assert is_correct(math, 1)
    assert is_correct(math, '1')
    assert not is_correct(math, True)
