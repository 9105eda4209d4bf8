# tests/test_routes.py

import io

import pytest

from models.booking import Booking
from services.booking_service import BookingService

from tests.conftest import BOOKING_DAY


def photo_upload(name='approval.jpg', data=b'\xff\xd8\xff\xe0fake-jpeg'):
    return (io.BytesIO(data), name, 'image/jpeg')


class TestAuthRoutes:

    def test_register_and_login(self, client, redis_stub):
        response = client.post('/api/auth/register', json={'username': 'coach', 'password': 'secret123'})
        assert response.status_code == 201
        assert response.get_json()['user']['is_admin'] is False

        response = client.post('/api/auth/login', json={'username': 'coach', 'password': 'secret123'})
        assert response.status_code == 200
        token = response.get_json()['token']
        assert f'auth_token:{token}' in redis_stub.values

    def test_bad_password(self, client, staff):
        response = client.post('/api/auth/login', json={'username': 'frontdesk', 'password': 'wrong'})
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_logout_revokes_token(self, client, staff_headers):
        assert client.post('/api/auth/logout', headers=staff_headers).status_code == 200
        assert client.post('/api/auth/logout', headers=staff_headers).status_code == 401

    def test_create_admin_needs_setup_key(self, client):
        response = client.post('/api/auth/create-admin',
                               json={'username': 'boss', 'password': 'secret123', 'setup_key': 'nope'})
        assert response.status_code == 403

        response = client.post('/api/auth/create-admin',
                               json={'username': 'boss', 'password': 'secret123', 'setup_key': 'setup-key'})
        assert response.status_code == 201
        assert response.get_json()['user']['is_admin'] is True


class TestAdminRoutes:

    def test_requires_token(self, client):
        assert client.get('/api/admin/timeslots').status_code == 401

    def test_requires_admin(self, client, staff_headers):
        assert client.get('/api/admin/timeslots', headers=staff_headers).status_code == 403

    def test_bulk_create_reports_skips(self, client, admin_headers):
        client.post('/api/admin/timeslots', json={'hour': 8}, headers=admin_headers)

        response = client.post('/api/admin/timeslots/bulk',
                               json={'startHour': 7, 'endHour': 10}, headers=admin_headers)

        body = response.get_json()
        assert response.status_code == 207
        assert body['created'] == 3
        assert body['skipped'] == 1

    def test_create_update_delete_slot(self, client, admin_headers):
        response = client.post('/api/admin/timeslots', json={'hour': 9}, headers=admin_headers)
        assert response.status_code == 201
        slot_id = response.get_json()['data']['id']

        response = client.put(f'/api/admin/timeslots/{slot_id}', json={'hour': 10}, headers=admin_headers)
        assert response.get_json()['data']['formatted_slot'] == '10:00 AM - 11:00 AM'

        assert client.delete(f'/api/admin/timeslots/{slot_id}', headers=admin_headers).status_code == 200
        assert client.delete(f'/api/admin/timeslots/{slot_id}', headers=admin_headers).status_code == 404

    def test_out_of_range_hour(self, client, admin_headers):
        response = client.post('/api/admin/timeslots', json={'hour': 23}, headers=admin_headers)
        assert response.status_code == 400


class TestSportRoutes:

    def test_create_sport(self, client, admin_headers):
        response = client.post('/api/sports/create', json={'id': 'padel', 'name': 'Padel'},
                               headers=admin_headers)

        assert response.status_code == 201
        names = [court['name'] for court in response.get_json()['data']['courts']]
        assert names == ['Padel Court 1', 'Padel Court 2', 'Padel Court 3', 'Padel Court 4']

        listing = client.get('/api/sports').get_json()
        assert [sport['id'] for sport in listing] == ['padel']

    def test_resize_and_guarded_delete(self, client, admin_headers, padel):
        response = client.put('/api/sports/padel/courts', json={'courtCount': 5}, headers=admin_headers)
        assert response.get_json()['message'] == 'Added 1 courts to Padel'

        response = client.delete('/api/sports/padel', headers=admin_headers)
        assert response.status_code == 400
        assert response.get_json()['details'] == {'blocking_count': 5}

    def test_sport_details(self, client, admin_headers, padel):
        body = client.get('/api/sports/padel/courts', headers=admin_headers).get_json()
        assert body['data']['court_count'] == 4

    def test_with_courts_is_public(self, client, padel):
        body = client.get('/api/sports/with-courts').get_json()
        assert body['data'][0]['court_count'] == 4


class TestBookingRoutes:

    def test_court_status(self, client, slots, padel):
        response = client.get('/api/bookings/court-status?sport=padel&date=2025-01-15')

        body = response.get_json()
        assert response.status_code == 200
        assert body['date'] == '2025-01-15'
        assert len(body['courts']) == 4
        assert body['selected_sport'] == 'padel'
        assert {'current_time', 'sports', 'time_slots'} <= set(body)

    def test_court_status_without_slots(self, client, padel):
        assert client.get('/api/bookings/court-status?sport=padel').status_code == 400

    def test_update_requires_login(self, client, slots, court):
        response = client.post('/api/bookings/update',
                               json={'courtId': court.id, 'timeSlotId': 1, 'status': 'closed'})
        assert response.status_code == 401

    def test_book_with_photo(self, client, slots, court, staff_headers, store):
        response = client.post(
            '/api/bookings/update',
            data={
                'courtId': str(court.id),
                'timeSlotId': '2',
                'status': 'booked',
                'booking_by': 'Alice',
                'date': BOOKING_DAY.isoformat(),
                'approval_photo': photo_upload(),
            },
            headers=staff_headers,
            content_type='multipart/form-data'
        )

        body = response.get_json()
        assert response.status_code == 200
        assert body['booking']['action'] == 'created'
        assert body['booking']['time_slot'] == '8:00 AM - 9:00 AM'
        assert body['booking']['user'] == 'frontdesk'
        key = body['booking']['approval_photo']['key']
        assert store.exists(key)
        assert body['booking']['approval_photo']['filename'] == 'approval.jpg'

        photo = client.get(f'/api/bookings/approval-photo/{key}').get_json()
        assert photo['url'] == store.url_for(key)

    def test_non_image_rejected_before_upload(self, client, slots, court, staff_headers, store):
        response = client.post(
            '/api/bookings/update',
            data={
                'courtId': str(court.id),
                'timeSlotId': '2',
                'status': 'booked',
                'booking_by': 'Alice',
                'approval_photo': (io.BytesIO(b'%PDF'), 'approval.pdf', 'application/pdf'),
            },
            headers=staff_headers,
            content_type='multipart/form-data'
        )

        assert response.status_code == 400
        assert store.objects == {}

    def test_booked_without_name(self, client, slots, court, staff_headers, store):
        response = client.post(
            '/api/bookings/update',
            data={
                'courtId': str(court.id),
                'timeSlotId': '2',
                'status': 'booked',
                'approval_photo': photo_upload(),
            },
            headers=staff_headers,
            content_type='multipart/form-data'
        )

        assert response.status_code == 400
        assert Booking.query.count() == 0
        assert store.objects == {}

    def test_unknown_court_is_404(self, client, slots, staff_headers):
        response = client.post('/api/bookings/update',
                               json={'courtId': 4242, 'timeSlotId': 1, 'status': 'closed'},
                               headers=staff_headers)
        assert response.status_code == 404

    def test_bulk_partial_is_207(self, client, slots, court, staff_headers):
        response = client.post('/api/bookings/bulk-update',
                               json={'courtId': court.id, 'timeSlotIds': [1, 2, 40],
                                     'status': 'closed', 'date': '2025-01-15'},
                               headers=staff_headers)

        body = response.get_json()
        assert response.status_code == 207
        assert body['partial'] is True
        assert body['successful'] == 2
        assert body['errors'][0]['time_slot_id'] == 40

    def test_bulk_multipart_shares_photo(self, client, slots, court, staff_headers, store):
        response = client.post(
            '/api/bookings/bulk-update',
            data={
                'courtId': str(court.id),
                'timeSlotIds': '[1, 2, 3]',
                'status': 'booked',
                'booking_by': 'League Night',
                'date': BOOKING_DAY.isoformat(),
                'approval_photo': photo_upload(),
            },
            headers=staff_headers,
            content_type='multipart/form-data'
        )

        assert response.status_code == 200
        assert len(store.objects) == 1
        assert Booking.query.count() == 3

    def test_bulk_all_failed_is_400(self, client, slots, court, staff_headers):
        response = client.post('/api/bookings/bulk-update',
                               json={'courtId': court.id, 'timeSlotIds': '30,40', 'status': 'closed'},
                               headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()['failed'] == 2


class TestMalformedInput:

    def test_non_string_booking_by(self, client, slots, court, staff_headers):
        response = client.post('/api/bookings/update',
                               json={'courtId': court.id, 'timeSlotId': 1, 'status': 'booked',
                                     'booking_by': 123},
                               headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'booking_by must be a string'
        assert Booking.query.count() == 0

    def test_non_string_booking_by_in_bulk(self, client, slots, court, staff_headers):
        response = client.post('/api/bookings/bulk-update',
                               json={'courtId': court.id, 'timeSlotIds': [1, 2], 'status': 'booked',
                                     'booking_by': ['Alice']},
                               headers=staff_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize('payload', [
        {'id': 'padel', 'name': 5},
        {'id': 7, 'name': 'Padel'},
    ])
    def test_non_string_sport_fields(self, client, admin_headers, payload):
        response = client.post('/api/sports/create', json=payload, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize('payload', [
        {'username': 'frontdesk', 'password': 123456},
        {'username': 42, 'password': 'secret123'},
    ])
    def test_non_string_login_fields(self, client, staff, payload):
        response = client.post('/api/auth/login', json=payload)
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    @pytest.mark.parametrize('payload', [
        {'username': 'coach', 'password': 1234567},
        {'username': {'name': 'coach'}, 'password': 'secret123'},
    ])
    def test_non_string_register_fields(self, client, payload):
        assert client.post('/api/auth/register', json=payload).status_code == 400

    def test_non_ascii_setup_key(self, client):
        response = client.post('/api/auth/create-admin',
                               json={'username': 'boss', 'password': 'secret123', 'setup_key': 'clé'})
        assert response.status_code == 403


class TestApprovalPhotoRoutes:

    def test_missing_photo_is_404(self, client):
        assert client.get('/api/bookings/approval-photo/nothing.jpg').status_code == 404

    def test_redirect_by_filename(self, client, store):
        attachment = store.add('gate.jpg')
        filename = attachment.key.split('/', 1)[1]

        response = client.get(f'/api/bookings/approval-photo-direct/{filename}')

        assert response.status_code == 302
        assert response.headers['Location'] == attachment.url

    def test_admin_listing_flags_orphans(self, client, slots, court, staff, admin_headers, store):
        kept = store.add('kept.jpg')
        orphan = store.add('orphan.jpg')
        BookingService.reconcile(court.id, 1, BOOKING_DAY, 'booked', staff,
                                 booking_by='Alice', attachment=kept, store=store)

        body = client.get('/api/bookings/admin/approval-photos', headers=admin_headers).get_json()

        flags = {photo['key']: photo['orphaned'] for photo in body['data']}
        assert flags == {kept.key: False, orphan.key: True}
        assert body['orphan_count'] == 1

    def test_listing_requires_admin(self, client, staff_headers):
        response = client.get('/api/bookings/admin/approval-photos', headers=staff_headers)
        assert response.status_code == 403


def test_health(client):
    body = client.get('/api/health').get_json()
    assert body['status'] == 'ok'


def test_unknown_route_is_json_404(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_token_for_deleted_user_rejected(client, app, redis_stub):
    redis_stub.setex('auth_token:stale', 60, '12345')
    response = client.get('/api/admin/timeslots', headers={'Authorization': 'Bearer stale'})
    assert response.status_code == 401
