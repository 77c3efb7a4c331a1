from datetime import date


def create(client, headers, **fields):
    payload = {'name': 'Brass Lamp', 'listing_price': 100, 'purchase_price': 60, 'category': 'Home & Garden'}
    payload.update(fields)
    resp = client.post('/products', json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_requires_a_session(client):
    resp = client.get('/products')
    assert resp.status_code == 401
    assert resp.get_json() == {'message': 'Authentication required'}


def test_invalid_token_is_rejected(client):
    resp = client.get('/products', headers={'Authorization': 'Bearer not-a-token'})
    assert resp.status_code == 401


def test_create_defaults_and_profit_lifecycle(client, auth_headers):
    product = create(client, auth_headers, tags='vintage, brass ,')
    assert product['status'] == 'listed'
    assert product['condition'] == 'good'
    assert product['tags'] == ['vintage', 'brass']
    assert product['profit'] is None

    resp = client.post(f"/products/{product['id']}/sold", json={'sold_price': 90, 'notes': 'Paid cash'},
                       headers=auth_headers)
    assert resp.status_code == 200
    sold = resp.get_json()
    assert sold['status'] == 'sold'
    assert sold['sold_price'] == 90
    assert sold['profit'] == 30
    assert sold['sold_at'] == date.today().isoformat()
    assert sold['notes'] == 'Paid cash'


def test_sold_on_create_uses_listing_price(client, auth_headers):
    product = create(client, auth_headers, status='sold')
    assert product['sold_price'] == 100
    assert product['profit'] == 40


def test_validation_errors_are_per_field(client, auth_headers):
    resp = client.post('/products', json={'name': '', 'listing_price': -5, 'status': 'gone'},
                       headers=auth_headers)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['message'] == 'Validation failed'
    assert set(body['errors']) == {'name', 'listing_price', 'status'}


def test_non_finite_prices_are_rejected(client, auth_headers):
    for value in ('inf', '-infinity', 'nan', 'Infinity'):
        resp = client.post('/products', json={'name': 'Lamp', 'listing_price': value}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()['errors']['listing_price'] == 'Must be a number'
    assert client.get('/products', headers=auth_headers).get_json()['total'] == 0


def test_mark_sold_requires_positive_price(client, auth_headers):
    product = create(client, auth_headers)
    resp = client.post(f"/products/{product['id']}/sold", json={'sold_price': 0}, headers=auth_headers)
    assert resp.status_code == 400
    assert 'sold_price' in resp.get_json()['errors']


def test_update_and_soft_delete(client, auth_headers):
    product = create(client, auth_headers)

    resp = client.put(f"/products/{product['id']}", json={'listing_price': 120, 'platform': 'eBay'},
                      headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()['listing_price'] == 120
    assert resp.get_json()['name'] == 'Brass Lamp'

    resp = client.delete(f"/products/{product['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert client.get(f"/products/{product['id']}", headers=auth_headers).status_code == 404
    assert client.get('/products', headers=auth_headers).get_json()['total'] == 0


def test_other_owners_products_are_invisible(client, register_user):
    alice = register_user('alice@example.com')['headers']
    bob = register_user('bob@example.com')['headers']
    product = create(client, alice)

    assert client.get(f"/products/{product['id']}", headers=bob).status_code == 404
    assert client.put(f"/products/{product['id']}", json={'name': 'Mine now'}, headers=bob).status_code == 404
    assert client.delete(f"/products/{product['id']}", headers=bob).status_code == 404
    assert client.get('/products', headers=bob).get_json()['products'] == []


def test_list_filters_sort_and_overview(client, auth_headers):
    create(client, auth_headers, name='Vintage Radio', listing_price=50, category='Electronics')
    create(client, auth_headers, name='camera', listing_price=200, category='Electronics', status='sold')
    create(client, auth_headers, name='Armchair', listing_price=80, description='vintage velvet')

    resp = client.get('/products?search=vintage&sort_by=name&sort_order=asc', headers=auth_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert [p['name'] for p in body['products']] == ['Armchair', 'Vintage Radio']
    assert body['overview'] == {
        'inventory_value': 330,
        'sold_count': 1,
        'total_profit': 140,
        'conversion_rate': 33.3,
        'active_listings': 2,
    }

    resp = client.get('/products?status=sold&category=Electronics', headers=auth_headers)
    assert [p['name'] for p in resp.get_json()['products']] == ['camera']


def test_list_rejects_unknown_sort_field(client, auth_headers):
    resp = client.get('/products?sort_by=owner_secret', headers=auth_headers)
    assert resp.status_code == 400
    assert 'sort_by' in resp.get_json()['errors']


def test_demo_session_reads_but_cannot_write(client, demo_headers):
    resp = client.get('/products', headers=demo_headers)
    assert resp.status_code == 200
    products = resp.get_json()['products']
    assert len(products) == 10

    resp = client.post('/products', json={'name': 'Sneaky'}, headers=demo_headers)
    assert resp.status_code == 200
    assert resp.get_json() == {
        'message': 'Demo mode: Adding products is disabled. Upgrade to manage your real data.',
        'restricted': True,
    }
    resp = client.delete(f"/products/{products[0]['id']}", headers=demo_headers)
    assert resp.get_json()['restricted'] is True
    assert client.get('/products', headers=demo_headers).get_json()['total'] == 10
