"""Flask application factory."""
import logging
import os

from flask import Flask, jsonify

from kasir.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database (storage engine + schema)
    init_db(app)

    # Error Handlers
    from kasir.exceptions import KasirError

    @app.errorhandler(KasirError)
    def handle_kasir_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"KasirError [{error.status_code}]: {error.message}", exc_info=error)
        else:
            app.logger.warning(f"KasirError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    @app.get('/health')
    def health():
        storage = app.extensions.get('storage')
        if storage is None:
            return jsonify(ok=False, error=app.extensions.get('storage_error')), 503
        return jsonify(ok=True, backend=storage.backend)

    # Register blueprints
    from kasir.blueprints.catalog import catalog_bp
    from kasir.blueprints.sales import sales_bp, reports_bp
    from kasir.blueprints.settings import settings_bp

    app.register_blueprint(catalog_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)

    # Register CLI commands
    from kasir.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
