"""
Participant routes for quiz functionality.

Participants can:
- View the live quizzes assigned to them
- Submit answers, each submission being recorded as a new attempt
- View their latest result per quiz
"""
from flask import jsonify, request

from quizhub.common.decorators import api_login_required, current_actor
from quizhub.quiz import quiz_bp
from quizhub.quiz.assessment import AssessmentEngine
from quizhub.quiz.results import ResultAggregator
from quizhub.quiz.validators import QuizPayloadValidator


@quiz_bp.route('', methods=['GET'])
@api_login_required
def list_available_quizzes():
    """
    List live quizzes assigned to the current participant, with their
    questions and options. Correct answers are never included.
    """
    quizzes = AssessmentEngine.list_available_quizzes(current_actor())
    quizzes_data = []
    for quiz in quizzes:
        quiz_data = quiz.to_dict(include_answers=False)
        quiz_data['question_count'] = len(quiz_data['questions'])
        quizzes_data.append(quiz_data)
    return jsonify({'success': True, 'quizzes': quizzes_data, 'count': len(quizzes_data)}), 200


@quiz_bp.route('/results', methods=['GET'])
@api_login_required
def my_results():
    results = ResultAggregator.results_for(current_actor())
    return jsonify({'success': True, 'results': results}), 200


@quiz_bp.route('/<int:quiz_id>', methods=['GET'])
@api_login_required
def get_quiz_for_attempt(quiz_id):
    """Quiz with questions and options. Correct answers are never included."""
    quiz = AssessmentEngine.get_quiz_for_attempt(current_actor(), quiz_id)
    return jsonify({'success': True, 'quiz': quiz.to_dict(include_answers=False)}), 200


@quiz_bp.route('/<int:quiz_id>/submit', methods=['POST'])
@api_login_required
def submit_quiz(quiz_id):
    """
    Submit answers for a quiz.
    Expects JSON: {"answers": [{"question_id": int, "option_id": int}, ...]}
    """
    answers = QuizPayloadValidator.validate_answers(request.get_json(silent=True))
    result = AssessmentEngine.submit_answers(current_actor(), quiz_id, answers)
    return jsonify({
        'success': True,
        'message': 'Quiz submitted successfully',
        'score': result['score'],
        'total': result['total'],
    }), 200
