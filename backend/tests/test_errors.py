def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error']['status'] == 404
    assert 'detail' in body['error']
    assert 'kind' not in body['error']


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}


def test_internal_error_shape(client, monkeypatch):
    from test_utils_seed import ensure_user, provision_shop, login
    import shopauthz.routes.groups as groups_mod
    owner = ensure_user('err@shop.local')
    shop, _ = provision_shop('Err Shop', owner=owner)
    headers = login(client, owner.email)

    def boom():
        raise RuntimeError('explode')
    monkeypatch.setattr(groups_mod, '_group_service', boom)
    resp = client.get(f'/shops/{shop.id}/groups', headers=headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['title'] == 'Internal Server Error'
    assert body['error']['detail'] == 'Unexpected error'
