# controllers/admin_controller.py

from flask import Blueprint, request, jsonify

from services.auth_service import admin_required
from services.slot_service import SlotService

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/admin/timeslots', methods=['GET'])
@admin_required
def get_all_time_slots():
    slots = SlotService.list_slots()
    return jsonify({
        'success': True,
        'count': len(slots),
        'data': [slot.to_dict() for slot in slots]
    }), 200


@admin_bp.route('/admin/timeslots', methods=['POST'])
@admin_required
def create_time_slot():
    data = request.get_json(silent=True) or {}
    slot = SlotService.create_slot(data.get('hour'))
    return jsonify({
        'success': True,
        'message': 'Time slot created successfully',
        'data': slot.to_dict()
    }), 201


@admin_bp.route('/admin/timeslots/<int:slot_id>', methods=['PUT'])
@admin_required
def update_time_slot(slot_id):
    data = request.get_json(silent=True) or {}
    slot = SlotService.update_slot(slot_id, data.get('hour'))
    return jsonify({
        'success': True,
        'message': 'Time slot updated successfully',
        'data': slot.to_dict()
    }), 200


@admin_bp.route('/admin/timeslots/<int:slot_id>', methods=['DELETE'])
@admin_required
def delete_time_slot(slot_id):
    SlotService.delete_slot(slot_id)
    return jsonify({
        'success': True,
        'message': 'Time slot deleted successfully'
    }), 200


@admin_bp.route('/admin/timeslots/bulk', methods=['POST'])
@admin_required
def bulk_create_time_slots():
    data = request.get_json(silent=True) or {}
    created, skipped = SlotService.bulk_create(data.get('startHour'), data.get('endHour'))

    if skipped:
        message = f'{len(created)} time slots created, {len(skipped)} duplicates skipped'
        status_code = 207  # some hours already existed
    else:
        message = f'{len(created)} time slots created successfully'
        status_code = 201

    return jsonify({
        'success': True,
        'message': message,
        'created': len(created),
        'skipped': len(skipped),
        'skipped_hours': skipped,
        'data': [slot.to_dict() for slot in created]
    }), status_code
