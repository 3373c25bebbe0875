from flask import Flask
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
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from egghunt.main import main
    flask_app.register_blueprint(main)

    from egghunt.api.hunt import hunt
    flask_app.register_blueprint(hunt, url_prefix='/api/hunt')

    from egghunt.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/admin')

    # Handlers bind to the module-level socketio instance
    from egghunt.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Only admins log in; participants are identified by username alone
    from egghunt.models import Admin

    @login_manager.user_loader
    def load_admin(admin_id):
        return db.session.get(Admin, int(admin_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with the default codes."""
        from egghunt.services.hunt import catalog
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            codes = catalog.reseed(flask_app.config['DEFAULT_CODES'])
            print(f'Database has been reset and seeded with {len(codes)} codes!')

    @click.command('seed-codes')
    @click.argument('codes', nargs=-1)
    def seed_codes_command(codes):
        """Replaces the code catalog (and clears all progress)."""
        from egghunt.services.hunt import catalog
        with flask_app.app_context():
            seeded = catalog.reseed(list(codes) or flask_app.config['DEFAULT_CODES'])
            print('Seeded codes: ' + ', '.join(c.code for c in seeded))

    @click.command('create-admin')
    @click.argument('username')
    @click.password_option()
    def create_admin_command(username, password):
        """Creates an admin account for the /admin endpoints."""
        from egghunt.services.hunt import admin as admin_controls
        with flask_app.app_context():
            account = admin_controls.create_admin(username, password)
            print(f'Admin {account.username} created.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_codes_command)
    flask_app.cli.add_command(create_admin_command)

    return flask_app
