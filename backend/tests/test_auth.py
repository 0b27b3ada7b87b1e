from quizplatform.models import InviteToken, PasswordResetToken


def test_register_login_logout(client):
    res = client.post('/register', json={'email': 'New@Example.com', 'password': 'secret123', 'name': 'Neo'})
    assert res.status_code == 201
    user = res.get_json()['user']
    assert user['email'] == 'new@example.com'
    assert user['role'] == 'student'

    res = client.get('/check_login')
    assert res.get_json()['user']['name'] == 'Neo'

    assert client.post('/logout').status_code == 200
    assert client.get('/check_login').status_code == 401

    res = client.post('/login', json={'email': 'new@example.com', 'password': 'wrong-pass'})
    assert res.status_code == 401
    assert res.get_json()['error'] == 'Invalid email or password'
    assert client.post('/login', json={'email': 'new@example.com', 'password': 'secret123'}).status_code == 200


def test_register_validation(client, make_user):
    assert client.post('/register', json={'email': 'a@example.com'}).status_code == 400
    assert client.post('/register', json={'email': 'a@example.com', 'password': 'short'}).status_code == 400
    make_user('taken@example.com')
    res = client.post('/register', json={'email': 'taken@example.com', 'password': 'secret123'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'User with this email already exists'


def test_invitable_roles(login_client, teacher, student):
    admin_client, _ = login_client('admin@example.com', role='admin')
    assert admin_client.get('/api/invites/roles').get_json() == ['admin', 'teacher', 'student']
    assert teacher[0].get('/api/invites/roles').get_json() == ['student']
    assert student[0].get('/api/invites/roles').get_json() == []


def test_invite_and_register_with_token(teacher, client):
    teacher_client, _ = teacher
    res = teacher_client.post('/api/invites', json={'email': 'kid@example.com', 'role': 'student'})
    assert res.status_code == 201
    assert res.get_json()['invite']['role'] == 'student'

    invite = InviteToken.query.filter_by(email='kid@example.com').one()
    res = client.get('/api/invites/validate', query_string={'email': 'kid@example.com', 'token': invite.token})
    assert res.get_json() == {'valid': True, 'email': 'kid@example.com', 'role': 'student'}

    res = client.post('/register', json={'email': 'kid@example.com', 'password': 'secret123', 'token': invite.token})
    assert res.status_code == 201
    assert invite.used is True

    res = client.get('/api/invites/validate', query_string={'email': 'kid@example.com', 'token': invite.token})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Invite token has already been used'


def test_teacher_cannot_invite_teacher(teacher):
    teacher_client, _ = teacher
    res = teacher_client.post('/api/invites', json={'email': 'x@example.com', 'role': 'teacher'})
    assert res.status_code == 403
    assert res.get_json()['error'] == "You don't have permission to invite this role"


def test_open_invite_sets_role_without_token(login_client, client):
    admin_client, _ = login_client('admin@example.com', role='admin')
    admin_client.post('/api/invites', json={'email': 'prof@example.com', 'role': 'teacher'})
    res = client.post('/register', json={'email': 'prof@example.com', 'password': 'secret123'})
    assert res.get_json()['user']['role'] == 'teacher'


def test_expired_invite(teacher, client):
    teacher_client, _ = teacher
    teacher_client.post('/api/invites', json={'email': 'late@example.com', 'role': 'student'})
    invite = InviteToken.query.filter_by(email='late@example.com').one()
    invite.expires_at = 0
    res = client.get('/api/invites/validate', query_string={'email': 'late@example.com', 'token': invite.token})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Invite token has expired'


def test_invite_discarded_when_mail_unavailable(flask_app, teacher):
    teacher_client, _ = teacher
    flask_app.config['MAIL_ENABLED'] = True
    flask_app.config['RESEND_API_KEY'] = None
    res = teacher_client.post('/api/invites', json={'email': 'kid@example.com', 'role': 'student'})
    assert res.status_code == 503
    assert InviteToken.query.count() == 0


def test_password_reset_flow(client, make_user):
    make_user('forgot@example.com')
    res = client.post('/api/password-reset/request', json={'email': 'forgot@example.com'})
    assert res.status_code == 200
    reset = PasswordResetToken.query.filter_by(email='forgot@example.com').one()

    query = {'email': 'forgot@example.com', 'token': reset.token}
    assert client.get('/api/password-reset/validate', query_string=query).get_json() == {'valid': True}

    body = {'email': 'forgot@example.com', 'token': reset.token, 'new_password': 'short'}
    assert client.post('/api/password-reset', json=body).status_code == 400

    body['new_password'] = 'brand-new-pass'
    assert client.post('/api/password-reset', json=body).status_code == 200
    assert client.post('/login', json={'email': 'forgot@example.com', 'password': 'brand-new-pass'}).status_code == 200

    res = client.post('/api/password-reset', json=body)
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Reset token has already been used'


def test_password_reset_unknown_email(client):
    res = client.post('/api/password-reset/request', json={'email': 'ghost@example.com'})
    assert res.status_code == 200
    assert PasswordResetToken.query.count() == 0


def test_new_reset_request_replaces_old_token(client, make_user):
    make_user('forgot@example.com')
    client.post('/api/password-reset/request', json={'email': 'forgot@example.com'})
    client.post('/api/password-reset/request', json={'email': 'forgot@example.com'})
    assert PasswordResetToken.query.filter_by(email='forgot@example.com').count() == 1


def test_login_state_stays_with_its_client(student, client):
    student_client, _ = student
    assert student_client.get('/check_login').status_code == 200
    assert client.get('/check_login').status_code == 401
    assert client.get('/api/users/me').get_json() is None


def test_password_reset_hides_mail_failure(flask_app, client, make_user):
    make_user('forgot@example.com')
    flask_app.config['MAIL_ENABLED'] = True
    flask_app.config['RESEND_API_KEY'] = None

    known = client.post('/api/password-reset/request', json={'email': 'forgot@example.com'})
    unknown = client.post('/api/password-reset/request', json={'email': 'ghost@example.com'})
    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json()
    assert PasswordResetToken.query.count() == 0
