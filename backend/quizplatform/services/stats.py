"""Read-only reports built from progress records: a player's history and
progress stats, and the platform-wide analytics shown to teachers."""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
import time

from quizplatform.catalog import GAME_KINDS
from quizplatform.models import GameInstance, ProgressRecord, User, ROLES

RECENT_GAMES = 5
DAILY_WINDOW_DAYS = 7
TOP_PERFORMERS = 5


def _percent(score, total):
    return score * 100.0 / total if total else 0.0


def _day(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime('%Y-%m-%d')


def _last_days(now: float, days: int):
    today = datetime.fromtimestamp(now, tz=timezone.utc).date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def _instances_by_code(codes):
    if not codes:
        return {}
    return {g.code: g for g in GameInstance.query.filter(GameInstance.code.in_(codes)).all()}


def _history_entry(record: ProgressRecord, game) -> dict:
    return {
        'gameCode': record.game_code,
        'gameId': game.game_kind if game else None,
        'gameType': game.type if game else None,
        'score': record.score,
        'totalQuestions': record.total_questions,
        'questionsAnswered': record.questions_answered,
        'isCompleted': record.is_completed,
        'completedAt': record.last_updated,
    }


def game_history(user: User):
    records = (
        ProgressRecord.query
        .filter_by(participant_id=str(user.id))
        .order_by(ProgressRecord.last_updated.desc())
        .all()
    )
    games = _instances_by_code({r.game_code for r in records})
    return [_history_entry(r, games.get(r.game_code)) for r in records]


def _achievements(completed):
    answered = sum(r.questions_answered for r in completed)
    correct = sum(r.score for r in completed)
    return [
        {
            'id': 'first-game',
            'title': 'First Steps',
            'description': 'Complete your first game',
            'unlocked': len(completed) >= 1,
        },
        {
            'id': 'ten-games',
            'title': 'Dedicated Learner',
            'description': 'Complete 10 games',
            'unlocked': len(completed) >= 10,
        },
        {
            'id': 'perfect-score',
            'title': 'Perfectionist',
            'description': 'Get every question right in a game',
            'unlocked': any(r.total_questions and r.score == r.total_questions for r in completed),
        },
        {
            'id': 'sharp-shooter',
            'title': 'Sharp Shooter',
            'description': 'Keep 80% accuracy over at least 50 questions',
            'unlocked': answered >= 50 and _percent(correct, answered) >= 80,
        },
    ]


def progress_stats(user: User, now: float = None) -> dict:
    now = time.time() if now is None else now
    completed = (
        ProgressRecord.query
        .filter_by(participant_id=str(user.id), is_completed=True)
        .order_by(ProgressRecord.last_updated.desc())
        .all()
    )
    answered = sum(r.questions_answered for r in completed)
    correct = sum(r.score for r in completed)
    average = (
        sum(_percent(r.score, r.total_questions) for r in completed) / len(completed) if completed else 0.0
    )

    per_day = defaultdict(list)
    for r in completed:
        per_day[_day(r.last_updated)].append(_percent(r.score, r.total_questions))
    daily = []
    for day in _last_days(now, DAILY_WINDOW_DAYS):
        scores = per_day.get(day, [])
        daily.append({
            'date': day,
            'games': len(scores),
            'averageScore': round(sum(scores) / len(scores), 1) if scores else 0.0,
        })

    recent = completed[:RECENT_GAMES]
    games = _instances_by_code({r.game_code for r in recent})
    return {
        'totalGames': len(completed),
        'averageScore': round(average, 1),
        'totalQuestions': sum(r.total_questions for r in completed),
        'accuracyRate': round(_percent(correct, answered), 1),
        'recentGames': [_history_entry(r, games.get(r.game_code)) for r in recent],
        'dailyStats': daily,
        'achievements': _achievements(completed),
    }


def analytics(now: float = None) -> dict:
    now = time.time() if now is None else now
    instances = GameInstance.query.all()
    records = ProgressRecord.query.all()
    users = User.query.all()
    completed = [r for r in records if r.is_completed]

    kind_of = {g.code: g.game_kind for g in instances}
    type_stats = []
    for kind in GAME_KINDS:
        kind_games = [g for g in instances if g.game_kind == kind['id']]
        kind_scores = [
            _percent(r.score, r.total_questions) for r in completed if kind_of.get(r.game_code) == kind['id']
        ]
        type_stats.append({
            'gameId': kind['id'],
            'name': kind['name'],
            'type': kind['type'],
            'games': len(kind_games),
            'completed': sum(1 for g in kind_games if g.status == 'completed'),
            'averageScore': round(sum(kind_scores) / len(kind_scores), 1) if kind_scores else 0.0,
        })

    roles = {role: 0 for role in ROLES}
    for u in users:
        roles[u.role] = roles.get(u.role, 0) + 1

    created_per_day = defaultdict(int)
    for g in instances:
        created_per_day[_day(g.created_at)] += 1
    players_per_day = defaultdict(set)
    for r in records:
        players_per_day[_day(r.last_updated)].add(r.participant_id)
    recent_activity = [
        {'date': day, 'games': created_per_day.get(day, 0), 'activeUsers': len(players_per_day.get(day, ()))}
        for day in _last_days(now, DAILY_WINDOW_DAYS)
    ]

    by_user = defaultdict(list)
    for r in completed:
        if r.participant_type == 'authenticated':
            by_user[r.participant_id].append(r)
    names = {str(u.id): u.display_name for u in users}
    performers = []
    for participant_id, rows in by_user.items():
        performers.append({
            'userId': participant_id,
            'name': names.get(participant_id, rows[0].participant_name),
            'gamesPlayed': len(rows),
            'averageScore': round(sum(_percent(r.score, r.total_questions) for r in rows) / len(rows), 1),
        })
    performers.sort(key=lambda p: (-p['averageScore'], -p['gamesPlayed']))

    all_scores = [_percent(r.score, r.total_questions) for r in completed]
    return {
        'overview': {
            'totalUsers': len(users),
            'totalGames': len(instances),
            'activeGames': sum(1 for g in instances if g.status == 'active'),
            'completedGames': sum(1 for g in instances if g.status == 'completed'),
            'totalParticipants': len({r.participant_id for r in records}),
            'averageScore': round(sum(all_scores) / len(all_scores), 1) if all_scores else 0.0,
        },
        'gameTypeStats': type_stats,
        'roleDistribution': roles,
        'recentActivity': recent_activity,
        'topPerformers': performers[:TOP_PERFORMERS],
    }
