# services/auth_service.py

from functools import wraps
from flask import current_app, request, g
from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy.exc import IntegrityError
import hmac
import redis
import uuid

from models.user import User
from db import extensions
from db.extensions import db
from services.exceptions import ValidationError, ConflictError, AuthError, ForbiddenError
from services.utils import clean_str

TOKEN_KEY_PREFIX = 'auth_token'


def _token_key(token):
    return f'{TOKEN_KEY_PREFIX}:{token}'


def check_password_type(password):
    if password is not None and not isinstance(password, str):
        raise ValidationError('password must be a string')


class AuthService:
    """
    Username/password identities with opaque session tokens.

    Tokens live in Redis as ``auth_token:{token} -> user id`` and expire after
    ``AUTH_TOKEN_TTL_SECONDS``.
    """

    @staticmethod
    def _create_user(username, password, is_admin=False):
        username = clean_str(username, 'username', required=False)
        check_password_type(password)
        if not username or not password:
            raise ValidationError('Username and password are required')
        if len(password) < 6:
            raise ValidationError('Password must be at least 6 characters')

        if User.query.filter_by(username=username).first():
            raise ConflictError('User already exists')

        user = User(
            username=username,
            password_hash=generate_password_hash(password),
            is_admin=is_admin
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('User already exists')

        current_app.logger.info(f"Created {'admin' if is_admin else 'staff'} user {username}")
        return user

    @staticmethod
    def register(username, password):
        return AuthService._create_user(username, password)

    @staticmethod
    def create_admin(username, password, setup_key):
        expected = current_app.config.get('ADMIN_SETUP_KEY')
        if not expected or not hmac.compare_digest(str(setup_key or '').encode(), expected.encode()):
            raise ForbiddenError('Invalid admin setup key')
        return AuthService._create_user(username, password, is_admin=True)

    @staticmethod
    def issue_token(user):
        token = uuid.uuid4().hex
        ttl = current_app.config.get('AUTH_TOKEN_TTL_SECONDS', 24 * 60 * 60)
        extensions.redis_client.setex(_token_key(token), ttl, str(user.id))
        return token

    @staticmethod
    def login(username, password):
        username = clean_str(username, 'username', required=False)
        check_password_type(password)
        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password or ''):
            raise AuthError('Invalid username or password')

        token = AuthService.issue_token(user)
        current_app.logger.info(f"User {user.username} logged in")
        return user, token

    @staticmethod
    def logout(token):
        extensions.redis_client.delete(_token_key(token))

    @staticmethod
    def user_for_token(token):
        try:
            user_id = extensions.redis_client.get(_token_key(token))
        except redis.exceptions.RedisError as e:
            current_app.logger.error(f"❌ Redis lookup failed during auth: {str(e)}")
            raise AuthError('Not authorized, token check failed')

        if not user_id:
            raise AuthError('Not authorized, token failed')

        user = db.session.get(User, int(user_id))
        if not user:
            raise AuthError('Not authorized, user not found')
        return user


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header.split(' ', 1)[1].strip() or None
    return None


def login_required(view):
    """Require a valid bearer token; the user ends up on ``g.current_user``."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise AuthError('Not authorized, no token')
        g.current_user = AuthService.user_for_token(token)
        g.auth_token = token
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @login_required
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not g.current_user.is_admin:
            raise ForbiddenError('Not authorized as admin')
        return view(*args, **kwargs)
    return wrapper
