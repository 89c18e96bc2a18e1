from flask import Blueprint, jsonify

from diabetic_care.services.cities import CitiesUnavailable, get_cities

bp = Blueprint('cities', __name__, url_prefix='/api/cities')


@bp.route('', methods=('GET',))
def list_cities():
    try:
        return jsonify(get_cities())
    except CitiesUnavailable as e:
        return jsonify({'error': str(e)}), 500
