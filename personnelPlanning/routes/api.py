from flask import Blueprint, Response, jsonify, current_app

from ..extensions import advisory_manager, limiter
from ..services.data_processing import normalize_personnel, result_to_frame
from ..services.engine import run_distribution
from ..services.models import AdvisoryAssignment, Person, Rule, Team
from ..services.rule_evaluator import declared_columns
from ..services.security import InputValidator, require_json_fields, validate_request

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _parse_personnel(data):
    rows = InputValidator.validate_list(data.get('personnel'), 'personnel',
                                        current_app.config['MAX_PERSONNEL'])
    return [Person.from_dict(row) for row in rows]


def _parse_teams(data):
    rows = InputValidator.validate_list(data.get('teams'), 'teams', current_app.config['MAX_TEAMS'])
    return [Team.from_dict(row) for row in rows]


def _parse_distribution_request(data):
    rules = InputValidator.validate_list(data.get('rules', []), 'rules', current_app.config['MAX_RULES'])
    advisory = InputValidator.validate_list(data.get('advisory', []), 'advisory',
                                            current_app.config['MAX_PERSONNEL'])
    columns = data.get('columns')
    if columns is not None:
        columns = [InputValidator.validate_string(c) for c in InputValidator.validate_list(columns, 'columns')]

    seed = InputValidator.validate_seed(data.get('seed'))
    if seed is None:
        seed = current_app.config.get('DISTRIBUTION_SEED')

    return {
        'personnel': _parse_personnel(data),
        'teams': _parse_teams(data),
        'rules': [Rule.from_dict(rule) for rule in rules],
        'advisory_assignments': [AdvisoryAssignment.from_dict(a) for a in advisory],
        'columns': columns,
        'seed': seed,
    }


def _distribute_from_request():
    data = InputValidator.validate_json_request(['personnel', 'teams'])
    kwargs = _parse_distribution_request(data)
    result = run_distribution(**kwargs)
    current_app.logger.info(
        f"Distributed {len(kwargs['personnel'])} personnel into {len(kwargs['teams'])} teams "
        f"({len(result.unassigned)} unassigned)"
    )
    return result


@api_bp.route('/distribute', methods=['POST'])
@limiter.limit("30 per minute")
@validate_request(require_json_fields('personnel', 'teams'))
def distribute_route():
    result = _distribute_from_request()
    return jsonify(result.to_dict()), 200


@api_bp.route('/export', methods=['POST'])
@limiter.limit("30 per minute")
@validate_request(require_json_fields('personnel', 'teams'))
def export_route():
    result = _distribute_from_request()
    csv_text = result_to_frame(result).to_csv(index=False)
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=distribution.csv'}
    )


@api_bp.route('/agent', methods=['POST'])
@limiter.limit("10 per minute")
@validate_request(require_json_fields('personnel', 'teams', 'command'))
def agent_route():
    data = InputValidator.validate_json_request()
    command = InputValidator.validate_string(data.get('command'), max_length=2000)
    personnel = _parse_personnel(data)
    teams = _parse_teams(data)

    response = advisory_manager.get_agent().propose(personnel, teams, command)
    current_app.logger.info(
        f"Advisory step proposed {len(response.assignments)} assignments "
        f"(simulated={response.simulated})"
    )
    return jsonify(response.to_dict()), 200


@api_bp.route('/columns', methods=['POST'])
@validate_request(require_json_fields('personnel'))
def columns_route():
    data = InputValidator.validate_json_request()
    personnel = _parse_personnel(data)
    return jsonify({'columns': declared_columns(personnel)}), 200


@api_bp.route('/personnel/normalize', methods=['POST'])
@validate_request(require_json_fields('rows'))
def normalize_personnel_route():
    data = InputValidator.validate_json_request()
    rows = InputValidator.validate_list(data.get('rows'), 'rows', current_app.config['MAX_PERSONNEL'])
    mapping = data.get('mapping')
    extra_mappings = data.get('extraMappings')
    for name, value in (('mapping', mapping), ('extraMappings', extra_mappings)):
        if value is not None and not isinstance(value, dict):
            raise ValueError(f"'{name}' must be an object")

    personnel = normalize_personnel(rows, mapping=mapping, extra_mappings=extra_mappings)
    skipped = len(rows) - len(personnel)
    if skipped:
        current_app.logger.info(f"Normalization skipped {skipped} of {len(rows)} rows")
    return jsonify({'personnel': [p.to_dict() for p in personnel], 'skipped': skipped}), 200
