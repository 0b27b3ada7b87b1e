from flask import Blueprint, jsonify, request
from flask_login import login_required
from quizplatform.authorization import get_authenticated_user, optional_user, require_role
from quizplatform.catalog import available_game_kinds
from quizplatform.errors import register_error_handlers
from quizplatform.socketio_events import broadcast
from quizplatform.services.games import instances, progress
from quizplatform.services.games.leaderboard import leaderboard
from quizplatform.services.games.questions import public_questions
from quizplatform.services import stats


games = Blueprint('games', __name__)
register_error_handlers(games)


def _participant_for(game, data):
    return progress.resolve_participant(game, optional_user(), data.get('guestId'))


@games.route('/available', methods=['GET'])
@login_required
def get_available_games():
    return jsonify(available_game_kinds(get_authenticated_user()))


@games.route('/create', methods=['POST'])
@login_required
def create_game():
    data = request.get_json(silent=True) or {}
    game_id = data.get('gameId')
    if not game_id:
        return jsonify({'error': 'gameId is required'}), 400
    game = instances.create_instance(get_authenticated_user(), game_id, data.get('customConfig'))
    return jsonify({
        'instanceId': game.id,
        'code': game.code,
        'gameId': game.game_kind,
        'type': game.type,
    }), 201


@games.route('/active', methods=['GET'])
@login_required
def get_active_games():
    return jsonify([g.to_dict() for g in instances.active_games(get_authenticated_user())])


@games.route('/history', methods=['GET'])
@login_required
def get_history():
    return jsonify(stats.game_history(get_authenticated_user()))


@games.route('/stats', methods=['GET'])
@login_required
def get_progress_stats():
    return jsonify(stats.progress_stats(get_authenticated_user()))


@games.route('/analytics', methods=['GET'])
@require_role('teacher')
def get_analytics():
    return jsonify(stats.analytics())


@games.route('/<string:game_code>', methods=['GET'])
def get_game(game_code):
    return jsonify(instances.get_instance(game_code).to_dict())


@games.route('/<string:game_code>/participants', methods=['GET'])
def get_participants(game_code):
    return jsonify(instances.participants_view(instances.get_instance(game_code)))


@games.route('/<string:game_code>/questions', methods=['GET'])
def get_questions(game_code):
    game = instances.get_instance(game_code)
    return jsonify(public_questions(game.questions or []))


@games.route('/<string:game_code>/join', methods=['POST'])
@login_required
def join_game(game_code):
    game = instances.join_game(get_authenticated_user(), game_code)
    broadcast('state_update', game.code)
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/join-guest', methods=['POST'])
def join_game_as_guest(game_code):
    data = request.get_json(silent=True) or {}
    game, guest = instances.join_game_as_guest(game_code, data.get('guestName'), data.get('guestId'))
    broadcast('state_update', game.code)
    payload = game.to_dict()
    payload['guestId'] = guest.guest_id
    payload['guestName'] = guest.name
    return jsonify(payload), 201


@games.route('/<string:game_code>/start', methods=['POST'])
@login_required
def start_game(game_code):
    game = instances.start_game(get_authenticated_user(), game_code)
    broadcast('state_update', game.code)
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/progress', methods=['POST'])
def update_progress(game_code):
    data = request.get_json(silent=True) or {}
    game = instances.get_instance(game_code)
    record = progress.update_progress(
        game,
        _participant_for(game, data),
        data.get('questionsAnswered'),
        data.get('totalQuestions'),
        data.get('score'),
    )
    broadcast('progress_update', game.code)
    return jsonify({'success': True, 'progress': record.to_dict()})


@games.route('/<string:game_code>/answers', methods=['POST'])
def submit_answer(game_code):
    data = request.get_json(silent=True) or {}
    if 'questionIndex' not in data:
        return jsonify({'error': 'questionIndex is required'}), 400
    game = instances.get_instance(game_code)
    result = progress.record_answer(game, _participant_for(game, data), data['questionIndex'], data.get('answer'))
    broadcast('progress_update', game.code)
    return jsonify(result)


@games.route('/<string:game_code>/complete', methods=['POST'])
def complete_game(game_code):
    data = request.get_json(silent=True) or {}
    game = instances.get_instance(game_code)
    record = progress.complete_participant(
        game,
        _participant_for(game, data),
        data.get('finalScore'),
        data.get('totalQuestions'),
        data.get('completedAt'),
    )
    broadcast('progress_update', game.code)
    broadcast('state_update', game.code)
    return jsonify({'success': True, 'progress': record.to_dict(), 'gameStatus': game.status})


@games.route('/<string:game_code>/exit', methods=['POST'])
def exit_game(game_code):
    data = request.get_json(silent=True) or {}
    game = instances.get_instance(game_code)
    record = progress.exit_game(game, _participant_for(game, data))
    broadcast('progress_update', game.code)
    broadcast('state_update', game.code)
    return jsonify({'success': True, 'progress': record.to_dict(), 'gameStatus': game.status})


@games.route('/<string:game_code>/leaderboard', methods=['GET'])
def get_leaderboard(game_code):
    game = instances.get_instance(game_code)
    include_all = request.args.get('include') == 'all'
    return jsonify(leaderboard(game.code, include_inactive=include_all))
