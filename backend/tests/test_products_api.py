"""
Product management API tests.

Verifies:
- Create / update / delete round trip through the edit form
- Listing with search and category filters
- Image upload, primary selection, reordering and removal on saved products
"""

import json

from conftest import create_product, png_file


def _image_record(image_id):
    return {
        'id': image_id,
        'url': f'https://cdn.example.com/{image_id}.png',
        'host_id': None,
        'is_primary': False,
        'alt': f'image {image_id}',
        'created_at': '2024-01-01T00:00:00Z',
    }


# =============================================================================
# CRUD
# =============================================================================


class TestProductCrud:
    def test_create(self, auth_client):
        product = create_product(auth_client)
        assert product['id'] > 0
        assert product['name'] == 'Apple Phone'
        assert product['slug'] == 'apple-phone'
        assert product['price'] == 199.99
        assert product['translations'] == [
            {'language': 'zh', 'name': 'Apple Phone', 'description': 'A phone'},
        ]
        assert product['primary_image_url'] is None

    def test_create_invalid(self, auth_client):
        resp = auth_client.post('/api/products', json={'name': 'x', 'price': '-5'})
        assert resp.status_code == 400
        assert 'price' in resp.json['error']

    def test_same_name_gets_suffixed_slug(self, auth_client):
        create_product(auth_client)
        second = create_product(auth_client, price='10', stock_quantity=1)
        third = create_product(auth_client)
        assert second['slug'] == 'apple-phone-2'
        assert third['slug'] == 'apple-phone-3'

    def test_rename_to_taken_name_suffixes_cleared_slug(self, auth_client):
        create_product(auth_client)
        other = create_product(auth_client, name='Laptop')
        resp = auth_client.put(f"/api/products/{other['id']}", json={'name': 'Apple Phone', 'slug': ''})
        assert resp.status_code == 200
        assert resp.json['slug'] == 'apple-phone-2'

    def test_create_duplicate_user_slug(self, auth_client):
        create_product(auth_client)
        resp = auth_client.post('/api/products', json={'name': 'Other', 'slug': 'apple-phone'})
        assert resp.status_code == 409
        assert resp.json['error'] == 'Slug already exists.'

    def test_create_duplicate_image_ids(self, auth_client):
        image = _image_record('dup')
        resp = auth_client.post('/api/products', json={'name': 'Lamp', 'images': [image, dict(image)]})
        assert resp.status_code == 400
        assert 'Image 2 duplicates id dup' in resp.json['error']

    def test_image_id_reused_by_another_product(self, auth_client):
        image = _image_record('shared')
        first = create_product(auth_client, name='Lamp', images=[image])
        second = create_product(auth_client, name='Desk', images=[dict(image)])
        assert [img['id'] for img in second['images']] == ['shared']
        assert [img['id'] for img in first['images']] == ['shared']

        auth_client.delete(f"/api/products/{first['id']}")
        kept = auth_client.get(f"/api/products/{second['id']}").json
        assert kept['primary_image_id'] == 'shared'

    def test_get_missing(self, auth_client):
        assert auth_client.get('/api/products/999').status_code == 404

    def test_update_keeps_id_and_slug(self, auth_client):
        product = create_product(auth_client)
        resp = auth_client.put(f"/api/products/{product['id']}", json={
            'name': 'Apple Phone Pro',
            'translations': {'en': {'name': 'Apple Phone Pro EN'}},
            'stock_quantity': 9,
        })
        assert resp.status_code == 200
        updated = resp.json
        assert updated['id'] == product['id']
        assert updated['name'] == 'Apple Phone Pro'
        assert updated['slug'] == 'apple-phone'
        assert updated['stock_quantity'] == 9
        assert updated['price'] == 199.99
        assert [t['language'] for t in updated['translations']] == ['zh', 'en']

    def test_update_drops_translation(self, auth_client):
        product = create_product(auth_client, translations={'en': {'name': 'Phone EN'}})
        resp = auth_client.put(f"/api/products/{product['id']}", json={'languages': []})
        assert [t['language'] for t in resp.json['translations']] == ['zh']

    def test_update_missing(self, auth_client):
        resp = auth_client.put('/api/products/999', json={'name': 'x'})
        assert resp.status_code == 404

    def test_delete(self, auth_client):
        product = create_product(auth_client)
        resp = auth_client.delete(f"/api/products/{product['id']}")
        assert resp.status_code == 200
        assert auth_client.get(f"/api/products/{product['id']}").status_code == 404


# =============================================================================
# LISTING
# =============================================================================


class TestProductListing:
    def test_empty_catalog(self, auth_client):
        body = auth_client.get('/api/products').json
        assert body['items'] == []
        assert body['state'] == 'empty'

    def test_search_and_category(self, auth_client):
        create_product(auth_client, name='Apple Phone', category='phones')
        create_product(auth_client, name='Laptop', description='Thin', category='computers')

        body = auth_client.get('/api/products?q=apple').json
        assert [p['name'] for p in body['items']] == ['Apple Phone']
        assert body['total'] == 2
        assert sorted(body['categories']) == ['computers', 'phones']

        body = auth_client.get('/api/products?category=computers').json
        assert [p['name'] for p in body['items']] == ['Laptop']

        body = auth_client.get('/api/products?q=zzz').json
        assert body['state'] == 'no_match'

    def test_newest_first(self, auth_client):
        first = create_product(auth_client, name='First')
        second = create_product(auth_client, name='Second')
        ids = [p['id'] for p in auth_client.get('/api/products').json['items']]
        assert ids == [second['id'], first['id']]


# =============================================================================
# IMAGES
# =============================================================================


class TestProductImages:
    def _upload(self, client, product_id, *names):
        return client.post(
            f"/api/products/{product_id}/images",
            data={'files': [png_file(name) for name in names]},
            content_type='multipart/form-data',
        )

    def test_upload_to_empty_product_sets_primary(self, auth_client, image_host):
        product = create_product(auth_client)
        resp = self._upload(auth_client, product['id'], 'front.png')
        assert resp.status_code == 200

        updated = resp.json['product']
        assert len(updated['images']) == 1
        image = updated['images'][0]
        assert image['is_primary'] is True
        assert updated['primary_image_id'] == image['id']
        assert image['thumbnail_url'] == 'https://imagedelivery.net/testhash/cf-1/thumbnail'
        assert updated['primary_image_url'] == 'https://imagedelivery.net/testhash/cf-1/medium'
        assert resp.json['warning'] is None

    def test_upload_rejects_invalid_file_individually(self, auth_client, image_host):
        product = create_product(auth_client)
        resp = auth_client.post(
            f"/api/products/{product['id']}/images",
            data={'files': [png_file('a.png'), (png_file()[0], 'notes.txt', 'text/plain'), png_file('c.png')]},
            content_type='multipart/form-data',
        )
        assert resp.status_code == 200
        assert len(resp.json['product']['images']) == 2
        assert [r['filename'] for r in resp.json['rejected']] == ['notes.txt']

    def test_upload_limit(self, app, auth_client, image_host):
        product = create_product(auth_client)
        names = [f"{i}.png" for i in range(app.config['MAX_PRODUCT_IMAGES'] + 1)]
        resp = self._upload(auth_client, product['id'], *names)
        assert resp.status_code == 400
        assert resp.json['limit_exceeded'] is True
        assert image_host.uploads == []

    def test_host_failure_keeps_local_preview(self, auth_client, image_host):
        image_host.fail_filenames.add('broken.png')
        product = create_product(auth_client)
        resp = self._upload(auth_client, product['id'], 'broken.png')
        assert resp.status_code == 200
        image = resp.json['product']['images'][0]
        assert image['host_id'] is None
        assert image['url'].startswith('data:image/png;base64,')
        assert resp.json['warning']

    def test_set_primary_and_reorder(self, auth_client, image_host):
        product = create_product(auth_client)
        images = self._upload(auth_client, product['id'], 'a.png', 'b.png', 'c.png').json['product']['images']

        resp = auth_client.put(f"/api/products/{product['id']}/images/{images[2]['id']}/primary")
        assert resp.status_code == 200
        assert resp.json['primary_image_id'] == images[2]['id']
        assert [img['is_primary'] for img in resp.json['images']] == [False, False, True]

        resp = auth_client.put(
            f"/api/products/{product['id']}/images/order",
            json={'from_index': 2, 'to_index': 0},
        )
        assert resp.status_code == 200
        assert [img['id'] for img in resp.json['images']] == [images[2]['id'], images[0]['id'], images[1]['id']]
        assert resp.json['primary_image_id'] == images[2]['id']

    def test_set_primary_unknown_image(self, auth_client, image_host):
        product = create_product(auth_client)
        resp = auth_client.put(f"/api/products/{product['id']}/images/nope/primary")
        assert resp.status_code == 400

    def test_reorder_out_of_range(self, auth_client, image_host):
        product = create_product(auth_client)
        self._upload(auth_client, product['id'], 'a.png')
        resp = auth_client.put(
            f"/api/products/{product['id']}/images/order",
            json={'from_index': 0, 'to_index': 5},
        )
        assert resp.status_code == 400

    def test_remove_primary_promotes_next(self, auth_client, image_host):
        product = create_product(auth_client)
        images = self._upload(auth_client, product['id'], 'a.png', 'b.png').json['product']['images']

        resp = auth_client.delete(f"/api/products/{product['id']}/images/{images[0]['id']}")
        assert resp.status_code == 200
        assert resp.json['remote_deleted'] is True
        assert image_host.deleted == [images[0]['host_id']]

        remaining = resp.json['product']['images']
        assert [img['id'] for img in remaining] == [images[1]['id']]
        assert remaining[0]['is_primary'] is True
        assert resp.json['product']['primary_image_id'] == images[1]['id']

    def test_remove_other_image_keeps_primary(self, auth_client, image_host):
        product = create_product(auth_client)
        images = self._upload(auth_client, product['id'], 'a.png', 'b.png', 'c.png').json['product']['images']
        auth_client.put(f"/api/products/{product['id']}/images/{images[1]['id']}/primary")

        resp = auth_client.delete(f"/api/products/{product['id']}/images/{images[0]['id']}")
        assert resp.status_code == 200
        remaining = resp.json['product']['images']
        assert [img['is_primary'] for img in remaining] == [True, False]
        assert resp.json['product']['primary_image_id'] == images[1]['id']

    def test_upload_body_too_large(self, app, auth_client, image_host, monkeypatch):
        product = create_product(auth_client)
        monkeypatch.setitem(app.config, 'MAX_CONTENT_LENGTH', 1024)
        resp = auth_client.post(
            f"/api/products/{product['id']}/images",
            data={'files': [png_file('a.png', size=4096)]},
            content_type='multipart/form-data',
        )
        assert resp.status_code == 413
        assert resp.json == {'error': 'Request body too large'}
        assert image_host.uploads == []

    def test_remove_when_host_delete_fails(self, auth_client, image_host):
        product = create_product(auth_client)
        images = self._upload(auth_client, product['id'], 'a.png').json['product']['images']
        image_host.delete_raises = True

        resp = auth_client.delete(f"/api/products/{product['id']}/images/{images[0]['id']}")
        assert resp.status_code == 200
        assert resp.json['remote_deleted'] is False
        assert 'warning' in resp.json
        assert resp.json['product']['images'] == []
        assert resp.json['product']['primary_image_id'] is None

    def test_remove_unknown_image(self, auth_client, image_host):
        product = create_product(auth_client)
        resp = auth_client.delete(f"/api/products/{product['id']}/images/nope")
        assert resp.status_code == 404


class TestFormImageUpload:
    """Uploads for a form that has not been saved yet."""

    def test_upload_for_new_form(self, auth_client, image_host):
        resp = auth_client.post(
            '/api/products/images/upload',
            data={'files': [png_file('a.png'), png_file('b.png')]},
            content_type='multipart/form-data',
        )
        assert resp.status_code == 200
        body = resp.json
        assert len(body['images']) == 2
        assert body['primary_image_id'] == body['images'][0]['id']

        # The form then saves the product with those images
        product = create_product(auth_client, images=body['images'], primary_image_id=body['primary_image_id'])
        assert [img['id'] for img in product['images']] == [img['id'] for img in body['images']]
        assert product['primary_image_id'] == body['images'][0]['id']

    def test_existing_primary_passed_through(self, auth_client, image_host):
        first = auth_client.post(
            '/api/products/images/upload',
            data={'files': [png_file('a.png')]},
            content_type='multipart/form-data',
        ).json

        resp = auth_client.post(
            '/api/products/images/upload',
            data={
                'files': [png_file('b.png')],
                'existing': json.dumps(first['images']),
                'primary_image_id': first['primary_image_id'],
            },
            content_type='multipart/form-data',
        )
        assert resp.status_code == 200
        assert len(resp.json['images']) == 2
        assert resp.json['primary_image_id'] == first['primary_image_id']

    def test_malformed_existing(self, auth_client, image_host):
        resp = auth_client.post(
            '/api/products/images/upload',
            data={'files': [png_file()], 'existing': '{nope'},
            content_type='multipart/form-data',
        )
        assert resp.status_code == 400

    def test_no_files(self, auth_client, image_host):
        resp = auth_client.post('/api/products/images/upload')
        assert resp.status_code == 400
