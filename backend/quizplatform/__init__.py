from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

SEED_USERS = [
    ('admin@example.com', 'Admin', 'admin'),
    ('teacher@example.com', 'Teacher', 'teacher'),
    ('student@example.com', 'Student', 'student'),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quizplatform.main import main
    flask_app.register_blueprint(main)

    from quizplatform.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from quizplatform.api.users import users
    flask_app.register_blueprint(users, url_prefix='/api/users')

    from quizplatform.api.invites import invites
    flask_app.register_blueprint(invites, url_prefix='/api')

    from quizplatform.api.misc import misc
    flask_app.register_blueprint(misc, url_prefix='/api')

    from quizplatform.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from quizplatform.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Not authenticated'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from quizplatform.models import User
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for email, name, role in SEED_USERS:
                user = User(email=email, name=name, role=role)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('create-user')
    @click.argument('email')
    @click.argument('name')
    @click.argument('role', type=click.Choice(['student', 'teacher', 'admin']))
    @click.argument('password')
    def create_user_command(email, name, role, password):
        """Creates an account with the given role."""
        from quizplatform.errors import GameError
        from quizplatform.services.accounts import create_user
        with flask_app.app_context():
            try:
                user = create_user(email, password, name, role)
                db.session.commit()
            except GameError as exc:
                raise click.ClickException(exc.message)
            print(f'Created {user.role} {user.email} (id={user.id})')

    @click.command('create-admin-invite')
    @click.argument('email')
    @click.option('--role', default='admin', type=click.Choice(['student', 'teacher', 'admin']))
    def create_admin_invite_command(email, role):
        """Creates the first invite of a fresh installation."""
        from quizplatform.errors import GameError
        from quizplatform.services.invites import create_bootstrap_invite
        with flask_app.app_context():
            try:
                invite = create_bootstrap_invite(email, role)
            except GameError as exc:
                raise click.ClickException(exc.message)
            base = flask_app.config.get('APP_DOMAIN', '').rstrip('/')
            print(f'Invite for {invite.email} ({invite.role}): {base}/invite?email={invite.email}&token={invite.token}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_user_command)
    flask_app.cli.add_command(create_admin_invite_command)

    return flask_app
