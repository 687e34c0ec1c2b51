from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Multiwatch clock server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'testing': bool(current_app.config.get('TESTING'))})
