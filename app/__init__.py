# app/__init__.py

import logging
import os
import time
import click
from flask import Flask, request
from flask_cors import CORS
from sqlalchemy import text
from werkzeug.exceptions import HTTPException
from .config import Config
from db.extensions import db, migrate, init_redis, check_redis_health

# Register models on the metadata before migrations/create_all
import models.sport  # noqa: F401
import models.court  # noqa: F401
import models.timeSlot  # noqa: F401
import models.booking  # noqa: F401
import models.user  # noqa: F401

from controllers.admin_controller import admin_bp
from controllers.auth_controller import auth_bp
from controllers.booking_controller import booking_bp
from controllers.sport_controller import sport_bp
from services.cloudinary_services import CloudinaryPhotoStore
from services.exceptions import BookingTrackerError
from services.slot_service import SlotService


def create_app(config_object=Config):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_object)

    CORS(app,
         origins=app.config.get('CORS_ORIGINS', []),
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'],
         supports_credentials=True,
         expose_headers=['Content-Type', 'Authorization'],
         max_age=3600
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    init_redis(app)
    app.extensions['photo_store'] = CloudinaryPhotoStore.from_config(app.config)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api')
    app.register_blueprint(sport_bp, url_prefix='/api')
    app.register_blueprint(booking_bp, url_prefix='/api')

    # Configure logging
    debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    app.logger.setLevel(log_level)

    # Request timing middleware for performance monitoring
    @app.before_request
    def before_request():
        request.start_time = time.time()
        if debug_mode:
            app.logger.debug(f"🚀 Started {request.method} {request.path}")

    @app.after_request
    def after_request(response):
        if hasattr(request, 'start_time'):
            elapsed = (time.time() - request.start_time) * 1000

            # Log slow requests (over 500ms)
            if elapsed > 500:
                app.logger.warning(
                    f"⚠️  SLOW REQUEST: {request.method} {request.path} "
                    f"took {elapsed:.2f}ms - Status: {response.status_code}"
                )
            elif debug_mode:
                app.logger.info(
                    f"✅ {request.method} {request.path} "
                    f"took {elapsed:.2f}ms - Status: {response.status_code}"
                )

        return response

    @app.errorhandler(BookingTrackerError)
    def handle_domain_error(e):
        if e.status_code >= 500:
            app.logger.error(f"❌ {type(e).__name__}: {e.message}")
        else:
            app.logger.info(f"{type(e).__name__} on {request.method} {request.path}: {e.message}")
        return e.to_dict(), e.status_code

    # Global error handler
    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return {'success': False, 'error': e.description}, e.code
        app.logger.error(f"❌ Unhandled exception: {str(e)}", exc_info=True)
        return {
            'success': False,
            'error': 'Internal server error. Please try again.'
        }, 500

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring"""
        try:
            db.session.execute(text('SELECT 1'))
        except Exception as e:
            app.logger.error(f"❌ Health check failed: {str(e)}")
            return {
                'status': 'error',
                'message': 'database unavailable',
                'timestamp': time.time()
            }, 500

        redis_ok = check_redis_health()
        return {
            'status': 'ok' if redis_ok else 'degraded',
            'database': 'connected',
            'redis': 'connected' if redis_ok else 'unavailable',
            'timestamp': time.time()
        }, 200 if redis_ok else 503

    @app.cli.command('seed-slots')
    def seed_slots():
        """Create the default hourly time slots."""
        created, skipped = SlotService.ensure_default_slots()
        click.echo(f"{len(created)} time slots created, {len(skipped)} already existed")

    return app
