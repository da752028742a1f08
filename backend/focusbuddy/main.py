from flask import Blueprint, request, jsonify
from focusbuddy.services.sessions.clock import server_now_ms, offset_for

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Focus Buddy session server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok'})

@main.route('/time')
def server_time():
    """Server clock for countdown reconciliation; pass client_time to get the offset."""
    now = server_now_ms()
    payload = {'server_time': now}
    client_time = request.args.get('client_time', type=int)
    if client_time is not None:
        payload['offset'] = offset_for(client_time, now)
    return jsonify(payload)
