# Client document service - storage, retrieval and e-mail dispatch
import logging
import os
import sys

from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

from clientdocs.api.documents import documents_bp
from clientdocs.api.errors import handle_document_error
from clientdocs.api.settings import settings_bp
from clientdocs.config import app_config
from clientdocs.database import db
from clientdocs.services.storage import DocumentStorageError, create_storage_service


def configure_logging(log_level=None):
    """Send all logs to stdout with a single handler."""
    log_level = (log_level or app_config.LOG_LEVEL).upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # Silence discovery cache warnings from the Drive client
    logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)


def create_app(config=None):
    """Build the Flask application. `config` overrides the environment defaults."""
    app = Flask(__name__)
    app.config.update(app_config.as_flask_config())
    if config:
        app.config.update(config)

    configure_logging(app.config.get('LOG_LEVEL'))

    # Behind a reverse proxy request.host_url must reflect the public host
    trusted_proxy_hops = int(os.environ.get('TRUSTED_PROXY_HOPS', '1'))
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=trusted_proxy_hops,
        x_proto=trusted_proxy_hops,
        x_host=trusted_proxy_hops,
        x_prefix=trusted_proxy_hops
    )

    db.init_app(app)
    app.extensions['document_storage'] = create_storage_service(
        app.config['DEFAULT_UPLOAD_ROOT'],
        drive_chunk_size_mb=app.config.get('DRIVE_CHUNK_SIZE_MB'),
        drive_timeout=app.config.get('DRIVE_TIMEOUT_SECONDS'),
    )

    app.register_blueprint(documents_bp)
    app.register_blueprint(settings_bp)
    app.register_error_handler(DocumentStorageError, handle_document_error)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({'error': 'File too large'}), 413

    with app.app_context():
        db.create_all()

    app.logger.info(f"Document storage ready (default root: {app.config['DEFAULT_UPLOAD_ROOT']})")
    return app


if __name__ == '__main__':
    application = create_app()
    application.run(host='0.0.0.0', port=int(os.environ.get('PORT', '3000')))
