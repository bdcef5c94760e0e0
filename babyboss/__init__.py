# ==============================================================================
# babyboss/__init__.py
# ------------------------------------------------------------------------------
# Application factory for creating and configuring the Flask app instance.
# ==============================================================================

import os
import logging
from flask import Flask
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect

from babyboss.sheets import SheetClient

# Initialize extensions globally to be accessible by other modules
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
sheets = SheetClient()


def create_app(config_class=Config):
    """
    Application factory function. Creates and configures the Flask application.

    Args:
        config_class (class): The configuration class to use.

    Returns:
        Flask: The configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Ensure the instance folder exists for the SQLite database
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions with the application instance
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    sheets.init_app(app)

    # Register blueprints with the application
    from babyboss.main import bp as main_bp
    app.register_blueprint(main_bp)

    @app.cli.command("seed")
    def seed():
        """Pulls users, customers and orders from the spreadsheet."""
        from babyboss.seed import seed_data
        loaded = seed_data()
        app.logger.info(f"Local store refreshed from the spreadsheet: {loaded}")

    app.logger.info('Baby Boss sales manager startup complete')

    return app
