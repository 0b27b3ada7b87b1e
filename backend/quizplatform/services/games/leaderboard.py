from typing import List, Sequence, Tuple

from quizplatform.models import ProgressRecord


def _sort_key(record):
    return (-record.questions_answered, -record.score)


def _beats(a, b) -> bool:
    if a.questions_answered != b.questions_answered:
        return a.questions_answered > b.questions_answered
    return a.score > b.score


def rank_entries(records: Sequence) -> List[Tuple[object, int]]:
    """Sort by questions answered then score (both descending) and rank.

    A record's rank is one plus the number of records ahead of it that are
    strictly better, so ties share a rank and the next distinct entry skips
    ahead: (5,5) (5,5) (5,4) (3,2) rank 1, 1, 3, 4.
    """
    ordered = sorted(records, key=_sort_key)
    ranked = []
    for index, record in enumerate(ordered):
        better = sum(1 for earlier in ordered[:index] if _beats(earlier, record))
        ranked.append((record, better + 1))
    return ranked


def leaderboard(game_code: str, include_inactive: bool = False) -> List[dict]:
    """Live leaderboard for a game code.

    Only active records are listed unless ``include_inactive`` is set, in
    which case finished and exited players are ranked too.
    """
    query = ProgressRecord.query.filter_by(game_code=game_code)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    entries = []
    for record, rank in rank_entries(query.order_by(ProgressRecord.id).all()):
        entry = record.to_dict()
        entry['rank'] = rank
        total = record.total_questions or 0
        entry['progress'] = round(record.questions_answered * 100.0 / total, 1) if total else 0.0
        entries.append(entry)
    return entries
