"""
app.py — Flask entry point for the plant knowledge base.

Initializes the Flask app, registers all route blueprints, calls init_db()
on startup (schema, migrations, reference data), injects i18n strings into
template context and adds the init-db / migrate / seed-sample CLI commands.

Run: python app.py → localhost:5000
"""

import os
import json
import logging

import click
from flask import Flask, jsonify, render_template, request
from flask_wtf.csrf import CSRFProtect

from database import init_db, get_db
from routes.main import main_bp
from routes.plants import plants_bp
from routes.sections import sections_bp
from routes.actions import actions_bp
from routes.garden import garden_bp
from routes.api import api_bp
from routes.export import export_bp

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

csrf = CSRFProtect()


def _configure_logging(level_name: str):
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=os.environ.get('PLANT_KB_SECRET_KEY', 'plant-kb-local-app-secret-key'),
        DATABASE=os.environ.get('PLANT_KB_DB_PATH', os.path.join(BASE_DIR, 'data', 'plant_kb.db')),
        BACKUP_DIR=os.path.join(BASE_DIR, 'backups'),
        WTF_CSRF_CHECK_DEFAULT=True,
        TEMPLATES_AUTO_RELOAD=True,
        PLANTS_PER_PAGE=25,
        LOG_LEVEL=os.environ.get('PLANT_KB_LOG_LEVEL', 'INFO'),
    )

    if test_config:
        app.config.update(test_config)

    if not app.config.get('TESTING'):
        _configure_logging(app.config['LOG_LEVEL'])

    csrf.init_app(app)

    # Initialize database: schema, migrations, reference data
    with app.app_context():
        init_db()

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(plants_bp)
    app.register_blueprint(sections_bp)
    app.register_blueprint(actions_bp)
    app.register_blueprint(garden_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(export_bp)

    # JSON clients do not carry a CSRF token
    csrf.exempt(api_bp)

    # Load i18n strings
    i18n_path = os.path.join(BASE_DIR, 'i18n', 'en.json')
    with open(i18n_path, 'r', encoding='utf-8') as f:
        i18n = json.load(f)

    @app.context_processor
    def inject_i18n():
        """Inject UI strings into all templates."""
        return {'i18n': i18n}

    _register_error_handlers(app)
    _register_cli(app)

    logger.info("Plant knowledge base started with database %s", app.config['DATABASE'])
    return app


# ========================================
# Error pages
# ========================================

def _wants_json() -> bool:
    return request.path.startswith('/api/') or request.is_json


def _register_error_handlers(app):

    @app.errorhandler(404)
    def not_found(error):
        if _wants_json():
            return jsonify({'success': False, 'error': 'Not found'}), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def server_error(error):
        logger.error("Unhandled error on %s: %s", request.path, error)
        if _wants_json():
            return jsonify({'success': False, 'error': 'Internal server error'}), 500
        return render_template('errors/500.html'), 500


# ========================================
# CLI
# ========================================

def _register_cli(app):

    @app.cli.command('init-db')
    def init_db_command():
        """Create tables, run migrations and seed reference data."""
        init_db()
        click.echo(f"Initialized database at {app.config['DATABASE']}")

    @app.cli.command('migrate')
    def migrate_command():
        """Apply pending schema migrations."""
        from migrations import run_migrations

        conn = get_db()
        try:
            applied = run_migrations(conn)
        finally:
            conn.close()
        if applied:
            click.echo(f"Applied migrations: {', '.join(str(v) for v in applied)}")
        else:
            click.echo("Database is up to date.")

    @app.cli.command('seed-sample')
    def seed_sample_command():
        """Add a handful of sample plants."""
        from plant_database import seed_sample_plants

        added = seed_sample_plants()
        click.echo(f"Added {added} sample plant(s).")


if __name__ == '__main__':
    app = create_app()
    # Debug mode: enabled by default for development (auto-reload on file changes)
    # Set FLASK_DEBUG=0 to disable for production
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
