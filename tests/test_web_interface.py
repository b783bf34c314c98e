import json
import os
import tempfile
import unittest
from unittest.mock import patch

from governor.keys import AccountKey
from web_interface import app as app_module
from web_interface.app import app, governors, nonces, load_deployments

class TestWebInterface(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.alice = AccountKey()
        cls.bob = AccountKey()
        cls.target = AccountKey()

    def setUp(self):
        """Deploy a fresh governor for each test at server time 1000"""
        governors.clear()
        nonces.clear()
        self.client = app.test_client()

        self.now = 1000
        patcher = patch.object(app_module, 'clock', side_effect=lambda: self.now)
        patcher.start()
        self.addCleanup(patcher.stop)

        response = self.client.post('/api/governor', json=self.alice.sign_payload({
            'quorum': 50,
            'initial_balance': 1000,
            'token': {'initial_supply': 1000, 'name': 'Governance', 'symbol': 'GOV', 'decimals': 8}
        }))
        self.assertEqual(response.status_code, 200)
        self.governor_id = response.get_json()['governor_id']
        self.base = f'/api/governor/{self.governor_id}'

    def post(self, key, path, payload):
        return self.client.post(self.base + path, json=key.sign_payload(payload))

    def propose(self, amount=100, duration=1):
        return self.post(self.alice, '/propose', {
            'to': self.target.account_id, 'amount': amount, 'duration': duration
        })

    def test_governor_info(self):
        """Test deployed governor details"""
        data = self.client.get(self.base).get_json()

        self.assertEqual(data['quorum'], 50)
        self.assertEqual(data['balance'], 1000)
        self.assertEqual(data['next_proposal_id'], 0)
        self.assertEqual(data['token']['symbol'], 'GOV')
        self.assertEqual(data['token']['total_supply'], 1000)

    def test_proposal_lifecycle(self):
        """Test propose, vote and execute over HTTP"""
        response = self.post(self.alice, '/token/transfer', {'to': self.bob.account_id, 'amount': 300})
        self.assertTrue(response.get_json()['success'])

        response = self.propose()
        self.assertEqual(response.get_json(), {'success': True, 'proposal_id': 0})

        self.now = 1010
        response = self.client.get(self.base + '/proposals')
        self.assertEqual(len(response.get_json()['proposals']), 1)

        response = self.post(self.bob, '/vote', {'proposal_id': 0, 'vote': 'against'})
        self.assertEqual(response.get_json()['against_weight'], 30)

        self.now = 1020
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.assertEqual(response.get_json()['for_weight'], 70)

        self.now = 1030
        response = self.post(self.alice, '/execute', {'proposal_id': 0})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['remaining_balance'], 900)

        data = self.client.get(self.base + '/proposals/0').get_json()
        self.assertTrue(data['executed'])
        self.assertEqual(data['to'], self.target.account_id)

    def test_governance_errors(self):
        """Test governance errors map to error responses"""
        self.propose()

        self.now = 1001
        response = self.post(self.alice, '/execute', {'proposal_id': 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'QuorumNotReached')

        self.post(self.bob, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.now = 1002
        response = self.post(self.bob, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.assertEqual(response.get_json()['error'], 'AlreadyVoted')

        self.now = 1061
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.assertEqual(response.get_json()['error'], 'VotePeriodEnded')

        response = self.propose(amount=0)
        self.assertEqual(response.get_json()['error'], 'AmountShouldNotBeZero')

    def test_client_timestamp_cannot_reopen_voting(self):
        """Test block time comes from the server and never moves back"""
        self.propose()

        self.now = 5000
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'for', 'timestamp': 1010})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'VotePeriodEnded')

        # Server clock stepping backwards does not reopen the window
        self.now = 1010
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.assertEqual(response.get_json()['error'], 'VotePeriodEnded')
        self.assertFalse(governors[self.governor_id]['governor'].has_voted(0, self.alice.account_id))

    def test_queries_do_not_move_block_time(self):
        """Test reads use server time without touching the environment"""
        self.propose()
        env = governors[self.governor_id]['env']

        self.now = 2000
        response = self.client.get(self.base + '/proposals?timestamp=1010')
        self.assertEqual(response.get_json()['proposals'], [])

        data = self.client.get(self.base + '/proposals/0').get_json()
        self.assertFalse(data['voting_open'])
        self.assertEqual(env.block_timestamp, 1000)

    def test_replayed_request_is_rejected(self):
        """Test a signed request is accepted only once"""
        payload = self.alice.sign_payload({'to': self.bob.account_id, 'amount': 100})

        response = self.client.post(self.base + '/token/transfer', json=payload)
        self.assertTrue(response.get_json()['success'])

        response = self.client.post(self.base + '/token/transfer', json=payload)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error'], 'Stale nonce')

        data = self.client.get(self.base).get_json()
        token = governors[self.governor_id]['token']
        self.assertEqual(token.balance_of(self.bob.account_id), 100)
        self.assertEqual(data['token']['total_supply'], 1000)

    def test_older_nonce_is_rejected(self):
        """Test requests signed earlier cannot follow a later one"""
        first = self.alice.sign_payload({'to': self.bob.account_id, 'amount': 100})
        second = self.alice.sign_payload({'to': self.bob.account_id, 'amount': 200})

        self.assertEqual(self.client.post(self.base + '/token/transfer', json=second).status_code, 200)
        self.assertEqual(self.client.post(self.base + '/token/transfer', json=first).status_code, 401)

        payload = self.bob.sign_payload({'to': self.alice.account_id, 'amount': 1, 'nonce': 'abc'})
        self.assertEqual(self.client.post(self.base + '/token/transfer', json=payload).status_code, 401)

    def test_allowance_transfers(self):
        """Test approve and transfer_from over HTTP"""
        response = self.post(self.alice, '/token/approve', {'spender': self.bob.account_id, 'amount': 200})
        self.assertEqual(response.get_json(), {'success': True, 'allowance': 200})

        response = self.post(self.bob, '/token/transfer_from', {
            'from': self.alice.account_id, 'to': self.target.account_id, 'amount': 150
        })
        self.assertEqual(response.get_json(), {'success': True, 'allowance': 50})

        response = self.post(self.bob, '/token/transfer_from', {
            'from': self.alice.account_id, 'to': self.target.account_id, 'amount': 51
        })
        self.assertFalse(response.get_json()['success'])

        token = governors[self.governor_id]['token']
        self.assertEqual(token.balance_of(self.target.account_id), 150)
        self.assertEqual(token.balance_of(self.alice.account_id), 850)

    def test_deployments_survive_restart(self):
        """Test deployments and nonces are written to and loaded from state_dir"""
        with tempfile.TemporaryDirectory() as state_dir:
            with patch.object(app_module.settings, 'state_dir', state_dir):
                self.post(self.alice, '/token/transfer', {'to': self.bob.account_id, 'amount': 300})
                self.propose()
                vote = self.bob.sign_payload({'proposal_id': 0, 'vote': 'for'})
                self.assertEqual(self.client.post(self.base + '/vote', json=vote).status_code, 200)

            with open(os.path.join(state_dir, f'{self.governor_id}.json')) as f:
                self.assertEqual(json.load(f)['quorum'], 50)

            governors.clear()
            nonces.clear()
            load_deployments(state_dir)

        governor = governors[self.governor_id]['governor']
        self.assertTrue(governor.has_voted(0, self.bob.account_id))
        self.assertEqual(governor.get_proposal_vote(0).for_weight, 30)
        self.assertEqual(governor.balance_of(self.bob.account_id), 300)

        response = self.client.post(self.base + '/vote', json=vote)
        self.assertEqual(response.status_code, 401)

        self.now = 1010
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'for'})
        self.assertEqual(response.get_json()['for_weight'], 100)

    def test_missing_resources(self):
        """Test unknown governor and proposal ids"""
        self.assertEqual(self.client.get('/api/governor/unknown').status_code, 404)

        response = self.client.get(self.base + '/proposals/16')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'ProposalNotFound')

    def test_rejects_bad_signature(self):
        """Test requests must be signed by the caller"""
        payload = self.alice.sign_payload({'to': self.target.account_id, 'amount': 100, 'duration': 1})
        payload['amount'] = 900

        response = self.client.post(self.base + '/propose', json=payload)
        self.assertEqual(response.status_code, 401)

        payload = self.bob.sign_payload({'proposal_id': 0, 'vote': 'for'})
        payload['caller'] = self.alice.account_id

        response = self.client.post(self.base + '/vote', json=payload)
        self.assertEqual(response.status_code, 401)

    def test_bad_request_body(self):
        """Test malformed input"""
        response = self.post(self.alice, '/vote', {'proposal_id': 0, 'vote': 'maybe'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()['success'])

if __name__ == '__main__':
    unittest.main()
