import logging
import os
from datetime import datetime, timedelta, timezone

import jwt
from firebase_admin import auth as fb_auth, credentials, initialize_app
from flask import current_app, g, request

from errors import AuthenticationError, AuthorizationError
from models import db, UserProfile

logger = logging.getLogger(__name__)

TOKEN_HEADER = 'x-auth-token'

firebase_initialized = False


def init_identity_provider(app):
    global firebase_initialized
    if firebase_initialized:
        return
    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if cred_path and os.path.exists(cred_path):
        cred = credentials.Certificate(cred_path)
        initialize_app(cred)
        firebase_initialized = True
        logger.info("identity provider initialised from %s", cred_path)
    else:
        logger.warning("identity provider credentials not found, only demo sign-in outside production")


def demo_mode():
    return current_app.config.get('ENV') != 'production'


def verify_identity_token(id_token):
    """Resolve an identity-provider ID token to ``{uid, email, name, picture}``.

    Outside production the token is not checked and the identity comes from
    the ``X-Demo-*`` headers instead. In production without provider
    credentials nobody can sign in.
    """
    if demo_mode():
        uid = request.headers.get('X-Demo-UID', 'demo-user')
        email = request.headers.get('X-Demo-Email', f'{uid}@example.com')
        return {
            'uid': uid,
            'email': email,
            'name': request.headers.get('X-Demo-Name', email.split('@')[0]),
            'picture': None,
        }
    if not firebase_initialized:
        logger.error("sign-in refused: identity provider is not configured")
        raise AuthenticationError("Sign-in is unavailable")
    if not id_token:
        raise AuthenticationError("ID token required")
    try:
        decoded = fb_auth.verify_id_token(id_token)
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.ExpiredIdTokenError) as e:
        logger.warning("identity token rejected: %s", e)
        raise AuthenticationError("Invalid identity token")
    email = decoded.get('email', '')
    return {
        'uid': decoded['uid'],
        'email': email,
        'name': decoded.get('name') or email.split('@')[0],
        'picture': decoded.get('picture'),
    }


def get_or_create_profile(identity, full_name=None):
    user = UserProfile.query.filter_by(uid=identity['uid']).first()
    if user:
        return user, False
    user = UserProfile(
        uid=identity['uid'],
        email=identity['email'],
        full_name=full_name or identity.get('name'),
        avatar=identity.get('picture'),
        role='user',
    )
    db.session.add(user)
    db.session.commit()
    logger.info("created profile %s for %s", user.id, user.email)
    return user, True


def issue_token(user):
    expires = datetime.now(timezone.utc) + timedelta(days=current_app.config['JWT_EXPIRES_DAYS'])
    payload = {'user': {'id': user.id, 'role': user.role}, 'exp': expires}
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def decode_token(token):
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Token is not valid")
    claims = payload.get('user') or {}
    if 'id' not in claims:
        raise AuthenticationError("Token is not valid")
    return claims


def current_user():
    """Return the signed-in profile, or None when no token was sent.

    A token that is present but invalid still raises.
    """
    if 'current_user' in g:
        return g.current_user
    token = request.headers.get(TOKEN_HEADER, '')
    user = None
    if token:
        claims = decode_token(token)
        user = db.session.get(UserProfile, claims['id'])
        if user is None:
            raise AuthenticationError("User not found")
    g.current_user = user
    g.user_id = user.id if user else None
    return user


def optional_user():
    try:
        return current_user()
    except AuthenticationError:
        return None


def require_user():
    user = current_user()
    if user is None:
        raise AuthenticationError("No token, authorization denied")
    return user


def require_admin():
    # role comes from the database row, not from the token claims
    user = require_user()
    if not user.is_admin:
        raise AuthorizationError()
    return user
