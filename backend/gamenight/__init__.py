from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    # Import and register blueprints here
    from gamenight.routes import main
    flask_app.register_blueprint(main)

    from gamenight.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from gamenight.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from gamenight.errors import register_error_handlers
    register_error_handlers(flask_app, db)

    # Flask-Login user loader
    from gamenight.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required', 'code': 'unauthorized'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from gamenight.models import seed_game_catalogue
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['host1', 'host2']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)

            seeded = seed_game_catalogue()
            db.session.commit()
            print(f'Database has been reset and seeded with {len(seeded)} games!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
