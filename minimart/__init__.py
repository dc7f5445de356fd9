"""Flask application factory."""
from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from minimart.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Setup Prometheus metrics instrumentation
    from minimart.blueprints.metrics import setup_metrics_instrumentation, record_eviction, record_sale
    setup_metrics_instrumentation(app)

    # Initialize database
    db_session = init_db(app)

    # One register per app: this process is the store's only terminal
    from minimart.services.register_service import Register
    from minimart.services.store_service import PersistentStore

    store = PersistentStore(db_session, max_value_bytes=app.config.get('STORE_MAX_VALUE_BYTES'))
    app.extensions['minimart'] = Register(
        store,
        strict_stock=app.config.get('STRICT_STOCK', False),
        default_store_name=app.config.get('BUSINESS_NAME', ''),
        on_settled=record_sale,
        on_evicted=record_eviction,
    )

    # Error Handlers
    from minimart.exceptions import MinimartError

    @app.errorhandler(MinimartError)
    def handle_minimart_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"MinimartError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"MinimartError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException) and error.code != 500:
            return jsonify({'status': 'error', 'message': error.description}), error.code

        import traceback
        app.logger.error(f"Unhandled Exception on {request.path}: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from minimart.blueprints.catalog import catalog_bp
    from minimart.blueprints.pos import pos_bp
    from minimart.blueprints.parking import parking_bp
    from minimart.blueprints.suppliers import suppliers_bp
    from minimart.blueprints.settings import settings_bp
    from minimart.blueprints.backup import backup_bp
    from minimart.blueprints.metrics import metrics_bp

    app.register_blueprint(catalog_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(parking_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(backup_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from minimart.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(
        f"Register ready: database={app.config.get('SQLALCHEMY_DATABASE_URI')}, "
        f"strict_stock={app.config.get('STRICT_STOCK')}"
    )

    return app


def get_register():
    """Register of the current app."""
    return current_app.extensions['minimart']
