"""
Relay Dashboard Service: Flask JSON surface

Exposes the controller's view state and operator actions to the browser UI.
All routes read or mutate the one controller attached to the app.
"""

import atexit
import logging
from typing import Optional

from flask import Flask, jsonify, redirect, request, url_for
from pydantic import ValidationError

from relay_dashboard import config
from relay_dashboard.api_client import RelayApiClient
from relay_dashboard.controller import DashboardController
from relay_dashboard.presentation import present_message_detail

logger = logging.getLogger(__name__)


def build_controller() -> DashboardController:
    client = RelayApiClient(config.RELAY_API_BASE_URL, timeout=config.REQUEST_TIMEOUT_SECONDS)
    return DashboardController(client, refresh_interval=config.REFRESH_INTERVAL_SECONDS)


def create_app(controller: Optional[DashboardController] = None, start: bool = False) -> Flask:
    """
    Build the dashboard Flask app.

    Args:
        controller: Controller to serve (default: one built from config)
        start: Start the controller's sync loop and register teardown at exit
    """
    if controller is None:
        controller = build_controller()

    app = Flask(__name__)
    app.config["DASHBOARD_CONTROLLER"] = controller
    logger.info(f"Dashboard app serving relay at {controller.client.base_url}")

    if start:
        controller.start()

        def shutdown_controller():
            controller.stop()
            controller.client.close()

        atexit.register(shutdown_controller)

    @app.route('/')
    def index():
        return redirect(url_for('view_state'))

    @app.route('/api/view')
    def view_state():
        return jsonify(controller.snapshot())

    @app.route('/api/filters', methods=['POST'])
    def filters_update():
        changes = request.get_json(silent=True)
        if not isinstance(changes, dict):
            return jsonify({"error": "JSON object required"}), 400
        try:
            controller.update_filters(changes)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(controller.snapshot())

    @app.route('/api/filters', methods=['DELETE'])
    def filters_clear():
        controller.clear_filters()
        return jsonify(controller.snapshot())

    @app.route('/api/refresh', methods=['POST'])
    def refresh():
        controller.refresh()
        return jsonify(controller.snapshot())

    @app.route('/api/messages/<message_id>')
    def message_view(message_id):
        message = controller.view_message(message_id)
        if message is None:
            return jsonify({"error": f"Message {message_id} not found"}), 404
        return jsonify(present_message_detail(message))

    @app.route('/api/selection', methods=['DELETE'])
    def message_close():
        controller.close_message()
        return jsonify({"modal_visible": False})

    @app.route('/api/messages/<message_id>/retry', methods=['POST'])
    def message_retry(message_id):
        outcome = controller.retry(message_id)
        notices = controller.snapshot()["notices"]
        body = {
            "ok": outcome.ok,
            "detail": outcome.detail,
            "notice": notices[-1] if notices else None,
        }
        return jsonify(body), (200 if outcome.ok else 502)

    return app
