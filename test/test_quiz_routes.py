"""
Test cases for the quiz HTTP API - admin and participant endpoints.
"""
from datetime import timedelta

import pytest

from quizhub.common.timeutils import to_iso, utcnow

from conftest import QUIZ_API, correct_answers, sample_questions, wrong_answers


def future_iso(days=1):
    return to_iso(utcnow() + timedelta(days=days)).replace('+00:00', 'Z')


class TestAdminEndpoints:
    """Test cases for quiz management endpoints."""

    def test_create_quiz(self, admin_client, participant):
        response = admin_client.post(QUIZ_API, json={
            'name': 'Arithmetic',
            'questions': sample_questions(),
            'assigned_user_ids': [participant.id],
        })

        assert response.status_code == 201
        quiz = response.get_json()['quiz']
        assert quiz['status'] == 'DRAFT'
        assert quiz['assigned_user_ids'] == [participant.id]
        assert all('is_correct' in o for q in quiz['questions'] for o in q['options'])

    def test_create_duplicate_name_conflicts(self, admin_client, make_quiz):
        make_quiz(name='Arithmetic')

        response = admin_client.post(QUIZ_API, json={'name': 'Arithmetic', 'questions': sample_questions()})

        assert response.status_code == 409
        assert response.get_json() == {'success': False, 'error': 'Quiz with name "Arithmetic" already exists'}

    def test_create_invalid_payload(self, admin_client):
        response = admin_client.post(QUIZ_API, json={'name': 'x', 'questions': []})

        assert response.status_code == 400
        data = response.get_json()
        assert data['success'] is False
        assert len(data['errors']) == 2

    def test_create_requires_login(self, client):
        response = client.post(QUIZ_API, json={'name': 'Arithmetic', 'questions': sample_questions()})
        assert response.status_code == 401

    def test_participant_cannot_create(self, participant_client):
        response = participant_client.post(QUIZ_API, json={'name': 'Arithmetic', 'questions': sample_questions()})

        assert response.status_code == 403
        assert response.get_json()['error'] == 'Only admins can create quizzes'

    def test_publish_and_unpublish(self, admin_client, make_quiz):
        quiz_id = make_quiz()['id']

        live = admin_client.post(f'{QUIZ_API}/{quiz_id}/status', json={'status': 'LIVE', 'expires_at': future_iso()})
        assert live.status_code == 200
        assert live.get_json()['quiz']['status'] == 'LIVE'
        assert live.get_json()['quiz']['expires_at'].endswith('+00:00')

        draft = admin_client.post(f'{QUIZ_API}/{quiz_id}/status', json={'status': 'DRAFT'})
        assert draft.status_code == 200
        assert draft.get_json()['quiz']['expires_at'] is None

    def test_publish_without_deadline_rejected(self, admin_client, make_quiz):
        quiz_id = make_quiz()['id']

        response = admin_client.post(f'{QUIZ_API}/{quiz_id}/status', json={'status': 'LIVE'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Expiration date is required to make the quiz live'

    def test_update_quiz(self, admin_client, make_quiz, participant):
        snapshot = make_quiz()

        response = admin_client.patch(f"{QUIZ_API}/{snapshot['id']}", json={
            'name': 'Renamed quiz',
            'assigned_user_ids': [participant.id],
            'questions': [{'id': snapshot['questions'][0]['id'], 'question_text': 'Reworded question'}],
        })

        assert response.status_code == 200
        quiz = response.get_json()['quiz']
        assert quiz['name'] == 'Renamed quiz'
        assert quiz['assigned_user_ids'] == [participant.id]
        assert quiz['questions'][0]['question_text'] == 'Reworded question'

    def test_update_unknown_question_is_not_found(self, admin_client, make_quiz):
        snapshot = make_quiz(name='Unchanged')

        response = admin_client.put(f"{QUIZ_API}/{snapshot['id']}", json={
            'name': 'Changed',
            'questions': [{'id': 99999, 'question_text': 'Not part of this quiz'}],
        })
        assert response.status_code == 404

        detail = admin_client.get(f"{QUIZ_API}/admin/{snapshot['id']}").get_json()['quiz']
        assert detail['name'] == 'Unchanged'

    def test_delete_quiz(self, admin_client, make_quiz):
        quiz_id = make_quiz()['id']

        response = admin_client.delete(f'{QUIZ_API}/{quiz_id}')
        assert response.status_code == 200
        assert response.get_json()['quiz']['status'] == 'DELETED'

        again = admin_client.delete(f'{QUIZ_API}/{quiz_id}')
        assert again.status_code == 400

    def test_list_and_filter(self, admin_client, make_quiz):
        kept = make_quiz(name='Kept')['id']
        gone = make_quiz(name='Gone')['id']
        admin_client.delete(f'{QUIZ_API}/{gone}')

        listing = admin_client.get(f'{QUIZ_API}/admin').get_json()
        assert [q['id'] for q in listing['quizzes']] == [kept]
        assert listing['quizzes'][0]['question_count'] == 2

        deleted = admin_client.get(f'{QUIZ_API}/admin?status=deleted').get_json()
        assert [q['id'] for q in deleted['quizzes']] == [gone]

    def test_get_unknown_quiz(self, admin_client):
        response = admin_client.get(f'{QUIZ_API}/admin/4242')
        assert response.status_code == 404

    def test_participants_listing(self, admin_client, participant, other_participant):
        response = admin_client.get(f'{QUIZ_API}/participants')

        assert response.status_code == 200
        emails = [u['email'] for u in response.get_json()['participants']]
        assert emails == [participant.email, other_participant.email]

    def test_attempt_ledger(self, admin_client, participant_client, participant, make_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)
        participant_client.post(f"{QUIZ_API}/{quiz['id']}/submit", json={'answers': correct_answers(quiz)})

        response = admin_client.get(f"{QUIZ_API}/{quiz['id']}/attempts")

        assert response.status_code == 200
        data = response.get_json()
        assert data['count'] == 1
        assert data['attempts'][0]['score_obtained'] == 2


class TestParticipantEndpoints:
    """Test cases for attempting quizzes."""

    def test_list_available(self, participant_client, participant, make_quiz):
        visible = make_quiz(assigned=[participant.id], live=True)['id']
        make_quiz(assigned=[participant.id])

        response = participant_client.get(QUIZ_API)

        assert response.status_code == 200
        assert [q['id'] for q in response.get_json()['quizzes']] == [visible]

    def test_quiz_hides_correct_answers(self, participant_client, participant, make_quiz):
        quiz_id = make_quiz(assigned=[participant.id], live=True)['id']

        response = participant_client.get(f'{QUIZ_API}/{quiz_id}')

        assert response.status_code == 200
        options = [o for q in response.get_json()['quiz']['questions'] for o in q['options']]
        assert options
        assert all('is_correct' not in o for o in options)

    def test_submit_scores(self, participant_client, participant, make_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)
        answers = correct_answers(quiz)[:1] + wrong_answers(quiz)[1:]

        response = participant_client.post(f"{QUIZ_API}/{quiz['id']}/submit", json={'answers': answers})

        assert response.status_code == 200
        data = response.get_json()
        assert (data['score'], data['total']) == (1, 2)

    def test_submit_empty(self, participant_client, participant, make_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)

        response = participant_client.post(f"{QUIZ_API}/{quiz['id']}/submit", json={'answers': []})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'No answers provided'

    def test_unassigned_participant(self, other_client, participant, make_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)

        assert other_client.get(f"{QUIZ_API}/{quiz['id']}").status_code == 404
        response = other_client.post(f"{QUIZ_API}/{quiz['id']}/submit", json={'answers': correct_answers(quiz)})
        assert response.status_code == 404

    def test_expired_quiz(self, participant_client, participant, make_quiz, expire_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)
        expire_quiz(quiz['id'])

        assert participant_client.get(f"{QUIZ_API}/{quiz['id']}").status_code == 404
        assert participant_client.get(QUIZ_API).get_json()['quizzes'] == []

        results = participant_client.get(f'{QUIZ_API}/results').get_json()['results']
        assert [r['id'] for r in results] == [quiz['id']]
        assert results[0]['status'] == 'EXPIRED'

    def test_results_after_two_attempts(self, participant_client, participant, make_quiz):
        quiz = make_quiz(assigned=[participant.id], live=True)
        url = f"{QUIZ_API}/{quiz['id']}/submit"
        participant_client.post(url, json={'answers': wrong_answers(quiz)})
        participant_client.post(url, json={'answers': correct_answers(quiz)})

        response = participant_client.get(f'{QUIZ_API}/results')

        row = response.get_json()['results'][0]
        assert row['latest_score'] == 2
        assert row['attempt_number'] == 2
        assert row['max_score'] == 2

    @pytest.mark.parametrize('method, path', [
        ('get', '/admin'),
        ('get', '/participants'),
        ('delete', '/1'),
    ])
    def test_admin_routes_forbidden(self, participant_client, method, path):
        response = getattr(participant_client, method)(f'{QUIZ_API}{path}')
        assert response.status_code == 403

    def test_admin_cannot_submit(self, admin_client, make_quiz):
        quiz = make_quiz(live=True)

        response = admin_client.post(f"{QUIZ_API}/{quiz['id']}/submit", json={'answers': correct_answers(quiz)})
        assert response.status_code == 403
