from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from sqlalchemy import select
from shopauthz import get_db
from shopauthz.models.authz import User
from shopauthz.services.policy import identity_claims, load_user

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        abort(401, description='invalid credentials')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=identity_claims(user))
    return {'access_token': token}


@auth_bp.get('/me')
@jwt_required()
def me():
    user = load_user(int(get_jwt_identity()))
    if not user:
        abort(404)
    claims = identity_claims(user)
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'groups': claims['groups'],
        'roles_by_shop': claims['roles_by_shop'],
    }
