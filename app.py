import logging
import os
from dotenv import load_dotenv
load_dotenv()
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import config_dict
from extensions import cors, mail, migrate
from models import db
from classes.errors import QuizError
from manage import register_commands
from routes.authentication import auth_bp
from routes.admin import admin_bp
from routes.quizzes import quiz_bp
from utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    @app.errorhandler(QuizError)
    def handle_quiz_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            logger.error("Quiz data error: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"success": False, "error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Server Error"}), 500


def create_app(env=None):
    env = (env or os.environ.get("FLASK_ENV", "production")).lower()
    app = Flask(__name__)
    app.config.from_object(config_dict.get(env, config_dict["production"]))

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    logger.info("Environment: %s", env)

    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)
    db.init_app(app)
    mail.init_app(app)
    migrate.init_app(app, db)

    @app.route('/')
    def home():
        return "Welcome to the Quiz Engine!"

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(quiz_bp, url_prefix='/api/quizzes')

    register_error_handlers(app)
    register_commands(app)
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'])
