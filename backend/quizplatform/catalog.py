"""Available game kinds.

The kind decides whether an instance is single-player or multiplayer and
which question generator builds its question set.
"""

GAME_KINDS = [
    {
        'id': 'single-player-math',
        'name': 'Math Quiz Solo',
        'type': 'single-player',
        'description': 'Test your math skills with addition and subtraction',
        'showTimer': True,
        'maxTime': 300,
    },
    {
        'id': 'multi-player-math',
        'name': 'Math Race',
        'type': 'multiplayer',
        'description': 'Race against others to solve math problems',
        'showTimer': True,
        'maxTime': 180,
    },
    {
        'id': 'custom-math-quiz',
        'name': 'Custom Math Quiz',
        'type': 'single-player',
        'description': 'Create your own math quiz with custom settings',
        'showTimer': True,
        'maxTime': 300,
        'isCustom': True,
    },
    {
        'id': 'custom-math-race',
        'name': 'Custom Math Race',
        'type': 'multiplayer',
        'description': 'Create a custom math race with your own settings',
        'showTimer': True,
        'maxTime': 180,
        'isCustom': True,
    },
    {
        'id': 'ai-mcq-quiz',
        'name': 'AI MCQ Quiz',
        'type': 'multiplayer',
        'description': 'Multiple-choice quiz generated by AI from your prompt',
        'showTimer': True,
        'maxTime': 300,
        'isCustom': True,
    },
]

_BY_ID = {kind['id']: kind for kind in GAME_KINDS}


def get_game_kind(kind_id):
    return _BY_ID.get(kind_id)


def available_game_kinds(user):
    """Students only see single-player kinds."""
    if user.role == 'student':
        return [k for k in GAME_KINDS if k['type'] == 'single-player']
    return list(GAME_KINDS)
