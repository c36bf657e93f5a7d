from flask import Blueprint, request, current_app, g
from shopauthz.config.settings import max_retries
from shopauthz.decorators.auth import with_actor
from shopauthz.services.authorizer import ClaimsAuthorizer
from shopauthz.services.groups import GroupService
from shopauthz.services.membership import MembershipService
from shopauthz.utils.listing import request_pagination, cached_list_response, canonicalize_timestamp
from shopauthz.errors import ValidationFailed

groups_bp = Blueprint('groups', __name__)


def _group_service() -> GroupService:
    return GroupService(ClaimsAuthorizer(), max_retries=max_retries(current_app.config))


def _membership_service() -> MembershipService:
    return MembershipService(ClaimsAuthorizer(), max_retries=max_retries(current_app.config))


def _list_groups(shop_id: int, head: bool):
    q = _group_service().groups_query(shop_id, g.actor)
    limit, offset = request_pagination()
    total = q.count()
    rows = q.offset(offset).limit(limit).all()
    latest_ts = max((canonicalize_timestamp(grp.updated_at) for grp in rows if grp.updated_at), default=None)
    return cached_list_response(
        [grp.to_dict() for grp in rows],
        [(grp.id, grp.version) for grp in rows],
        total, limit, offset, latest_ts, head=head,
    )


@groups_bp.get('/shops/<int:shop_id>/groups')
@with_actor
def list_groups(shop_id: int):
    return _list_groups(shop_id, head=False)


@groups_bp.route('/shops/<int:shop_id>/groups', methods=['HEAD'])
@with_actor
def head_groups(shop_id: int):
    return _list_groups(shop_id, head=True)


@groups_bp.post('/shops/<int:shop_id>/groups')
@with_actor
def create_group(shop_id: int):
    grp = _group_service().create_group(request.json or {}, shop_id, g.actor)
    return {'group': grp.to_dict()}, 201


@groups_bp.get('/shops/<int:shop_id>/groups/<int:group_id>')
@with_actor
def get_group(shop_id: int, group_id: int):
    svc = _group_service()
    grp = svc.get_group(group_id, shop_id, g.actor)
    body = grp.to_dict()
    body['member_ids'] = svc.roles.member_ids(grp.id)
    return {'group': body}


@groups_bp.put('/shops/<int:shop_id>/groups/<int:group_id>')
@with_actor
def update_group(shop_id: int, group_id: int):
    grp = _group_service().update_group(group_id, request.json or {}, shop_id, g.actor)
    return {'group': grp.to_dict()}


@groups_bp.delete('/shops/<int:shop_id>/groups/<int:group_id>')
@with_actor
def delete_group(shop_id: int, group_id: int):
    _group_service().delete_group(group_id, shop_id, g.actor)
    return {'status': 'deleted'}


@groups_bp.put('/shops/<int:shop_id>/default-group')
@with_actor
def set_default_group(shop_id: int):
    group_id = (request.json or {}).get('group_id')
    if not isinstance(group_id, int) or isinstance(group_id, bool):
        raise ValidationFailed('group_id must be int')
    grp = _group_service().set_default_group(shop_id, group_id, g.actor)
    return {'shop_id': shop_id, 'default_group_id': grp.id}


@groups_bp.post('/groups/<int:group_id>/users/<int:user_id>')
@with_actor
def add_user(group_id: int, user_id: int):
    _membership_service().add_user(user_id, group_id, g.actor)
    return {'status': 'added', 'group_id': group_id, 'user_id': user_id}


@groups_bp.delete('/groups/<int:group_id>/users/<int:user_id>')
@with_actor
def remove_user(group_id: int, user_id: int):
    _membership_service().remove_user(user_id, group_id, g.actor)
    return {'status': 'removed', 'group_id': group_id, 'user_id': user_id}
