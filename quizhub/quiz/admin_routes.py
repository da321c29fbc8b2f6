"""
Admin routes for quiz management.

Admins can:
- Create quizzes with questions, options and assigned participants
- Update, publish, unpublish and delete quizzes
- Review the attempt ledger of a quiz
"""
from flask import jsonify, request

from quizhub.common.decorators import api_login_required, current_actor
from quizhub.quiz import quiz_bp
from quizhub.quiz.lifecycle import QuizLifecycleManager
from quizhub.quiz.results import ResultAggregator
from quizhub.quiz.validators import QuizPayloadValidator


@quiz_bp.route('', methods=['POST'])
@api_login_required
def create_quiz():
    """Create a DRAFT quiz."""
    data = QuizPayloadValidator.validate_create(request.get_json(silent=True))
    quiz = QuizLifecycleManager.create_quiz(
        current_actor(),
        data['name'],
        data['questions'],
        data['assigned_user_ids'],
    )
    return jsonify({
        'success': True,
        'message': 'Quiz created successfully',
        'quiz': quiz.to_dict(include_answers=True, include_assignments=True),
    }), 201


@quiz_bp.route('/admin', methods=['GET'])
@api_login_required
def list_all_quizzes():
    """
    List quizzes for admins.
    Deleted quizzes are only returned when ?status=DELETED is given.
    """
    status = request.args.get('status')
    quizzes = QuizLifecycleManager.list_quizzes(current_actor(), status=status.upper() if status else None)
    return jsonify({
        'success': True,
        'quizzes': [quiz.to_summary() for quiz in quizzes],
        'count': len(quizzes),
    }), 200


@quiz_bp.route('/admin/<int:quiz_id>', methods=['GET'])
@api_login_required
def get_quiz_admin(quiz_id):
    quiz = QuizLifecycleManager.get_quiz(current_actor(), quiz_id)
    return jsonify({
        'success': True,
        'quiz': quiz.to_dict(include_answers=True, include_assignments=True),
    }), 200


@quiz_bp.route('/<int:quiz_id>', methods=['PUT', 'PATCH'])
@api_login_required
def update_quiz(quiz_id):
    """
    Nested update: scalar fields, the assignment set and questions with
    their options are written in one transaction.
    """
    changes = QuizPayloadValidator.validate_update(request.get_json(silent=True))
    quiz = QuizLifecycleManager.update_quiz(current_actor(), quiz_id, changes)
    return jsonify({
        'success': True,
        'message': 'Quiz updated successfully',
        'quiz': quiz.to_dict(include_answers=True, include_assignments=True),
    }), 200


@quiz_bp.route('/<int:quiz_id>', methods=['DELETE'])
@api_login_required
def delete_quiz(quiz_id):
    quiz = QuizLifecycleManager.delete_quiz(current_actor(), quiz_id)
    return jsonify({
        'success': True,
        'message': 'Quiz deleted successfully',
        'quiz': quiz.to_summary(),
    }), 200


@quiz_bp.route('/<int:quiz_id>/status', methods=['POST'])
@api_login_required
def change_quiz_status(quiz_id):
    """Make a quiz LIVE (with expires_at, null for no expiry) or DRAFT."""
    status, expires_at = QuizPayloadValidator.validate_status(request.get_json(silent=True))
    quiz = QuizLifecycleManager.set_status(current_actor(), quiz_id, status, expires_at)
    return jsonify({
        'success': True,
        'message': f'Quiz is now {quiz.status}',
        'quiz': quiz.to_summary(),
    }), 200


@quiz_bp.route('/<int:quiz_id>/attempts', methods=['GET'])
@api_login_required
def list_quiz_attempts(quiz_id):
    attempts = ResultAggregator.attempts_for_quiz(current_actor(), quiz_id)
    return jsonify({
        'success': True,
        'quiz_id': quiz_id,
        'attempts': attempts,
        'count': len(attempts),
    }), 200


@quiz_bp.route('/participants', methods=['GET'])
@api_login_required
def list_participants():
    users = QuizLifecycleManager.list_participants(current_actor())
    return jsonify({
        'success': True,
        'participants': [user.to_dict() for user in users],
    }), 200
