# db/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import redis
from redis.connection import ConnectionPool, SSLConnection
import urllib.parse
import logging

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)

# Session tokens live here; bound by init_redis() in create_app
redis_client = None


def create_redis_pool(config):
    """
    Connection pool for the auth token store.
    No connection is opened until the first command.
    """
    redis_url = config.get('REDIS_URL')

    if redis_url:
        parsed = urllib.parse.urlparse(redis_url)

        pool_kwargs = {
            'host': parsed.hostname,
            'port': parsed.port or 6379,
            'username': parsed.username,
            'password': parsed.password,
            'decode_responses': True,
            'socket_connect_timeout': 10,
            'socket_timeout': 5,
            'socket_keepalive': True,
            'retry_on_timeout': True,
            'health_check_interval': 30,
            'max_connections': 50,
        }

        if config.get('REDIS_TLS_ENABLED') or parsed.scheme == 'rediss':
            pool_kwargs.update({
                'connection_class': SSLConnection,
                'ssl_cert_reqs': None,
                'ssl_check_hostname': False,
            })
            logger.info("✅ Redis pool with SSL/TLS enabled")

        logger.info(f"✅ Redis connection pool created: {parsed.hostname}")
        return ConnectionPool(**pool_kwargs)

    logger.info("🔧 Local Redis pool")
    return ConnectionPool(
        host=config.get('REDIS_HOST', 'localhost'),
        port=int(config.get('REDIS_PORT', 6379)),
        db=int(config.get('REDIS_DB', 0)),
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        max_connections=20,
    )


def init_redis(app):
    """Build the pool from ``app.config`` and bind the module-level client."""
    global redis_client
    redis_client = redis.Redis(connection_pool=create_redis_pool(app.config))
    return redis_client


def check_redis_health():
    """Check Redis connection health"""
    try:
        redis_client.ping()
        return True
    except redis.exceptions.RedisError as e:
        logger.error(f"❌ Redis health check failed: {str(e)}")
        return False
