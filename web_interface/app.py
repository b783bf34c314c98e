#!/usr/bin/env python3
"""
Web interface for the token-weighted governor
"""

from flask import Flask, request, jsonify
import glob
import hashlib
import json
import os
import time

from governor import (
    Governor, GovernorError, GovernorErrorKind, GovernanceToken,
    ExecutionEnvironment, GovernorState, VoteType
)
from governor.config import Settings, configure_logging
from governor.keys import AccountKey, NonceRegistry

settings = Settings.from_env()
configure_logging(settings.log_level)

app = Flask(__name__)

# In-memory deployments: governor_id -> {'governor', 'token', 'env'}
governors = {}
nonces = NonceRegistry()

NONCES_FILE = "nonces.json"


def clock() -> int:
    """Server time in seconds; block time never comes from the client"""
    return int(time.time())


def _write_json(path, data):
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w") as f:
        json.dump(data, f, indent=2)
    os.replace(tmp_path, path)


def save_deployment(governor_id, state_dir):
    """Write one deployment and the nonce registry under state_dir"""
    deployment = governors[governor_id]
    os.makedirs(state_dir, exist_ok=True)
    _write_json(os.path.join(state_dir, f"{governor_id}.json"), {
        'quorum': deployment['governor'].quorum,
        'token': deployment['token'].to_dict(),
        'env': deployment['env'].to_dict(),
        'state': deployment['governor'].state.to_dict(),
    })
    _write_json(os.path.join(state_dir, NONCES_FILE), nonces.to_dict())


def load_deployments(state_dir):
    """Restore every deployment saved under state_dir"""
    nonces_path = os.path.join(state_dir, NONCES_FILE)
    if os.path.exists(nonces_path):
        with open(nonces_path, "r") as f:
            for account, nonce in json.load(f).items():
                nonces.consume(account, nonce)

    for path in sorted(glob.glob(os.path.join(state_dir, "*.json"))):
        if os.path.basename(path) == NONCES_FILE:
            continue
        with open(path, "r") as f:
            data = json.load(f)

        token = GovernanceToken.from_dict(data['token'])
        env = ExecutionEnvironment.from_dict(data['env'])
        governor = Governor(token, data['quorum'], env, GovernorState.from_dict(data['state']))

        governor_id = os.path.splitext(os.path.basename(path))[0]
        governors[governor_id] = {'governor': governor, 'token': token, 'env': env}
        app.logger.info("Loaded governor %s from %s", governor_id, path)


def _persist(governor_id):
    if settings.state_dir:
        save_deployment(governor_id, settings.state_dir)


def _signed_request():
    """Return (body, None) for a fresh request signed by its caller, else (None, response)"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not AccountKey.verify_payload(data):
        return None, (jsonify({'success': False, 'error': 'Invalid signature'}), 401)

    if not nonces.consume(data['caller'], data.get('nonce')):
        app.logger.warning("Rejected replayed request from %s", data['caller'])
        return None, (jsonify({'success': False, 'error': 'Stale nonce'}), 401)

    return data, None


def _deployment(governor_id):
    return governors.get(governor_id)


def _current_time(deployment):
    # Block time only moves forward
    return max(deployment['env'].block_timestamp, clock())


def _begin_call(deployment, data):
    """Set caller and block time for this call"""
    env = deployment['env']
    env.set_caller(data['caller'])
    env.set_block_timestamp(_current_time(deployment))


def _error_response(error: GovernorError):
    status = 404 if error.kind == GovernorErrorKind.PROPOSAL_NOT_FOUND else 400
    return jsonify({'success': False, 'error': error.kind.value, 'message': str(error)}), status


def _not_found():
    return jsonify({'error': 'Governor not found'}), 404


@app.route('/')
def index():
    """Service summary"""
    return jsonify({
        'service': 'token-governor',
        'governors': len(governors),
        'default_quorum': settings.quorum
    })


@app.route('/api/governor', methods=['POST'])
def create_governor():
    """Deploy a governance token and a governor funded with initial_balance"""
    data, error = _signed_request()
    if error:
        return error

    try:
        token_data = data.get('token', {})
        deployer = data['caller']

        token = GovernanceToken.create(
            deployer=deployer,
            initial_supply=token_data['initial_supply'],
            name=token_data.get('name'),
            symbol=token_data.get('symbol'),
            decimals=token_data.get('decimals', 0)
        )

        governor_id = hashlib.sha256(
            f"{token.address}_{deployer}_{data['nonce']}".encode()
        ).hexdigest()[:16]

        env = ExecutionEnvironment(
            caller=deployer,
            block_timestamp=clock(),
            contract_account=f"governor-{governor_id}",
            contract_balance=data.get('initial_balance', settings.initial_balance)
        )
        governor = Governor(token, data.get('quorum', settings.quorum), env)

        governors[governor_id] = {'governor': governor, 'token': token, 'env': env}
        _persist(governor_id)
        app.logger.info("Created governor %s with quorum %d", governor_id, governor.quorum)

        return jsonify({
            'success': True,
            'governor_id': governor_id,
            'token_address': token.address,
            'quorum': governor.quorum,
            'balance': env.balance()
        })

    except (KeyError, TypeError, ValueError) as e:
        app.logger.warning("Rejected governor creation: %s", e)
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/governor/<governor_id>')
def get_governor(governor_id):
    """Get governor information"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    governor = deployment['governor']
    token = deployment['token']

    return jsonify({
        'governor_id': governor_id,
        'quorum': governor.quorum,
        'balance': deployment['env'].balance(),
        'next_proposal_id': governor.next_proposal_id(),
        'token': {
            'address': token.address,
            'name': token.metadata.name,
            'symbol': token.metadata.symbol,
            'decimals': token.metadata.decimals,
            'total_supply': governor.total_supply()
        }
    })


def _token_call(governor_id, action):
    """Run a signed token operation; `action(token, data)` returns the response body"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    data, error = _signed_request()
    if error:
        return error

    try:
        body = action(deployment['token'], data)
        if body['success']:
            _persist(governor_id)
        return jsonify(body)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/governor/<governor_id>/token/transfer', methods=['POST'])
def transfer_tokens(governor_id):
    """Transfer governance tokens from the caller"""
    def action(token, data):
        success = token.transfer(data['caller'], data['to'], int(data['amount']))
        return {'success': success, 'balance': token.balance_of(data['caller'])}

    return _token_call(governor_id, action)


@app.route('/api/governor/<governor_id>/token/approve', methods=['POST'])
def approve_tokens(governor_id):
    """Allow spender to move up to amount of the caller's tokens"""
    def action(token, data):
        success = token.approve(data['caller'], data['spender'], int(data['amount']))
        return {'success': success, 'allowance': token.allowance(data['caller'], data['spender'])}

    return _token_call(governor_id, action)


@app.route('/api/governor/<governor_id>/token/transfer_from', methods=['POST'])
def transfer_tokens_from(governor_id):
    """Spend an allowance granted to the caller"""
    def action(token, data):
        success = token.transfer_from(data['caller'], data['from'], data['to'], int(data['amount']))
        return {'success': success, 'allowance': token.allowance(data['from'], data['caller'])}

    return _token_call(governor_id, action)


@app.route('/api/governor/<governor_id>/propose', methods=['POST'])
def propose(governor_id):
    """Create spending proposal"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    data, error = _signed_request()
    if error:
        return error

    try:
        _begin_call(deployment, data)
        proposal_id = deployment['governor'].propose(
            to=data['to'],
            amount=data['amount'],
            duration=data['duration']
        )
        _persist(governor_id)
        return jsonify({'success': True, 'proposal_id': proposal_id})

    except GovernorError as e:
        return _error_response(e)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/governor/<governor_id>/vote', methods=['POST'])
def vote(governor_id):
    """Vote on proposal"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    data, error = _signed_request()
    if error:
        return error

    try:
        _begin_call(deployment, data)
        governor = deployment['governor']
        proposal_id = int(data['proposal_id'])
        governor.vote(proposal_id, VoteType(data['vote']))
        _persist(governor_id)
        tally = governor.get_proposal_vote(proposal_id)

        return jsonify({
            'success': True,
            'for_weight': tally.for_weight,
            'against_weight': tally.against_weight
        })

    except GovernorError as e:
        return _error_response(e)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/governor/<governor_id>/execute', methods=['POST'])
def execute(governor_id):
    """Execute accepted proposal"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    data, error = _signed_request()
    if error:
        return error

    try:
        _begin_call(deployment, data)
        deployment['governor'].execute(int(data['proposal_id']))
        _persist(governor_id)
        return jsonify({
            'success': True,
            'remaining_balance': deployment['env'].balance()
        })

    except GovernorError as e:
        return _error_response(e)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/governor/<governor_id>/proposals')
def get_proposals(governor_id):
    """Get proposals still open for voting"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    governor = deployment['governor']
    now = _current_time(deployment)

    proposals_data = [
        governor.get_proposal_results(proposal_id, at=now)
        for proposal_id in governor.get_active_proposals(at=now)
    ]

    return jsonify({'proposals': proposals_data})


@app.route('/api/governor/<governor_id>/proposals/<int:proposal_id>')
def get_proposal(governor_id, proposal_id):
    """Get proposal and its tally"""
    deployment = _deployment(governor_id)
    if deployment is None:
        return _not_found()

    try:
        results = deployment['governor'].get_proposal_results(
            proposal_id, at=_current_time(deployment)
        )
        return jsonify(results)
    except GovernorError as e:
        return _error_response(e)


if settings.state_dir:
    load_deployments(settings.state_dir)


if __name__ == "__main__":
    app.run(
        host=settings.host,
        port=settings.port,
        debug=False
    )
