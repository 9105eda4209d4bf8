# controllers/sport_controller.py

from flask import Blueprint, request, jsonify

from services.auth_service import admin_required
from services.sport_service import SportService

sport_bp = Blueprint('sport', __name__)


@sport_bp.route('/sports', methods=['GET'])
def get_all_sports():
    return jsonify([sport.to_dict() for sport in SportService.list_sports()]), 200


@sport_bp.route('/sports/with-courts', methods=['GET'])
def get_all_sports_with_courts():
    return jsonify({
        'success': True,
        'data': SportService.list_sports_with_court_counts()
    }), 200


@sport_bp.route('/sports/<sport_id>/courts', methods=['GET'])
@admin_required
def get_sport_with_courts(sport_id):
    sport, courts = SportService.get_sport_with_courts(sport_id)
    return jsonify({
        'success': True,
        'data': {
            'sport': sport.to_dict(),
            'court_count': len(courts),
            'courts': [court.to_dict() for court in courts]
        }
    }), 200


@sport_bp.route('/sports/create', methods=['POST'])
@admin_required
def create_sport():
    data = request.get_json(silent=True) or {}
    sport, courts = SportService.create_sport(data.get('id'), data.get('name'))
    return jsonify({
        'success': True,
        'message': f'Sport "{sport.name}" and {len(courts)} courts created successfully',
        'data': {
            'sport': sport.to_dict(),
            'courts': [court.to_dict() for court in courts]
        }
    }), 201


@sport_bp.route('/sports/<sport_id>/courts', methods=['PUT'])
@admin_required
def update_court_count(sport_id):
    data = request.get_json(silent=True) or {}
    sport, added, removed = SportService.update_court_count(sport_id, data.get('courtCount'))
    court_count = int(data.get('courtCount'))

    if added:
        message = f'Added {len(added)} courts to {sport.name}'
    elif removed:
        message = f'Removed {removed} courts from {sport.name}'
    else:
        message = f'{sport.name} already has {court_count} courts'

    return jsonify({
        'success': True,
        'message': message,
        'data': {
            'sport': sport.to_dict(),
            'court_count': court_count,
            'added_courts': [court.to_dict() for court in added],
            'removed_courts': removed
        }
    }), 200


@sport_bp.route('/sports/<sport_id>', methods=['DELETE'])
@admin_required
def delete_sport(sport_id):
    sport_name = SportService.delete_sport(sport_id)
    return jsonify({
        'success': True,
        'message': f'Sport "{sport_name}" deleted successfully'
    }), 200
