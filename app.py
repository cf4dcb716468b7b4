from flask import Flask
from flask_cors import CORS

from config import Config, parse_rate_limit

# Import utilities
from storage import AppServices, EXTENSION_KEY
from utils.db_utils import DatabaseManager
from utils.errors import register_error_handlers
from utils.logging_utils import app_logger, setup_logging, log_info
from utils.rate_limiter import RateLimiter
from utils.security_middleware import SecurityMiddleware
from utils.security_utils import hash_password
from utils.token_utils import TokenService

# Import blueprints
from blueprints.main_routes import main_bp
from blueprints.user_auth_api_routes import user_auth_api_bp
from blueprints.public_data_api_routes import public_data_api_bp
from blueprints.student_data_api_routes import student_data_api_bp
from blueprints.admin_api_routes import admin_api_bp


def build_services(config):
    """Construct the database, stores and auth helpers described by `config`."""
    db = DatabaseManager(config['DATABASE_PATH'], pool_size=config['DB_POOL_SIZE'])
    db.initialize_database()

    token_service = TokenService(
        config['JWT_SECRET'],
        expires_in=config['JWT_EXPIRES_IN'],
        algorithm=config['JWT_ALGORITHM'],
    )

    rate_limiter = RateLimiter()
    rate_limiter.set_limit('auth', *parse_rate_limit(config['AUTH_RATE_LIMIT']))
    rate_limiter.set_limit('api', *parse_rate_limit(config['API_RATE_LIMIT']))

    return AppServices(db, token_service, rate_limiter)


def seed_admin(services, config):
    email = config.get('SEED_ADMIN_EMAIL')
    password = config.get('SEED_ADMIN_PASSWORD')
    if not email or not password:
        return None
    user = services.users.ensure_admin(email, hash_password(password))
    log_info(app_logger, "Bootstrap admin ensured", user_id=user['id'])
    return user


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_mapping(Config.as_dict())
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_FILE'])

    CORS(app)  # Enable CORS for all routes
    SecurityMiddleware(app)
    register_error_handlers(app)

    services = build_services(app.config)
    app.extensions[EXTENSION_KEY] = services
    seed_admin(services, app.config)

    app.register_blueprint(main_bp)
    app.register_blueprint(user_auth_api_bp)
    app.register_blueprint(public_data_api_bp)
    app.register_blueprint(student_data_api_bp)
    app.register_blueprint(admin_api_bp)

    log_info(app_logger, "Application created", env=app.config['APP_ENV'],
             database=app.config['DATABASE_PATH'])
    return app


def close_app(app):
    """Release the connection pool owned by `app`."""
    services = app.extensions.pop(EXTENSION_KEY, None)
    if services is not None:
        services.close()


if __name__ == '__main__':
    application = create_app()
    try:
        application.run(host='0.0.0.0', port=5000, debug=application.config['APP_ENV'] == 'development')
    finally:
        close_app(application)
