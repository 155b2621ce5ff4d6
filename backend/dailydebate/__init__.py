from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from sqlalchemy.exc import OperationalError
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config, calendar=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # "Today" for rollover and streaks; tests hand in a fixed calendar
    from dailydebate.services.debate.clock import Calendar
    flask_app.extensions['debate_calendar'] = calendar or Calendar(flask_app.config['CIVIL_TIMEZONE'])

    from dailydebate.main import main
    flask_app.register_blueprint(main)

    from dailydebate.api.debate import debate
    flask_app.register_blueprint(debate, url_prefix='/api/debate')

    from dailydebate.api.questions import questions
    flask_app.register_blueprint(questions, url_prefix='/api/questions')

    from dailydebate.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from dailydebate.services.debate.errors import DebateError

    @flask_app.errorhandler(DebateError)
    def handle_debate_error(exc):
        return jsonify({'error': str(exc)}), exc.status_code

    @flask_app.errorhandler(OperationalError)
    def handle_storage_error(exc):
        flask_app.logger.error(f"[storage] {exc.__class__.__name__}: {exc.orig}")
        return jsonify({'error': 'Storage temporarily unavailable, retry shortly'}), 503, {'Retry-After': '5'}

    from dailydebate.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('rollover')
    def rollover_command():
        """Closes and settles yesterday's question and activates today's."""
        from dailydebate.services.debate.lifecycle import rollover
        with flask_app.app_context():
            result = rollover()
        click.echo(
            f"closed={result.closed_question_id} majority={result.majority} "
            f"skipped={result.skipped_question_ids} "
            f"activated={result.activated_question_id}"
        )

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from dailydebate.services.debate.lifecycle import schedule_question
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u, is_admin=(u == 'testuser1'))
                user.set_password('password')
                db.session.add(user)
            db.session.commit()

            schedule_question('Is pineapple acceptable on pizza?', 'Yes', 'No')
            schedule_question('Should homework be abolished?', 'Abolish it', 'Keep it')
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(rollover_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
