"""Flask backend for the CHIP-8 web host."""

from __future__ import annotations

import os

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from chip8.errors import InvalidKeyError, ProgramLoadError

from .emulator_service import init_app, service

app = Flask(__name__)

# Restrict CORS by default; allow opt-in via config/env
allowed_origins = app.config.get("WEB_ALLOWED_ORIGINS") or os.environ.get(
    "CHIP8_WEB_ALLOWED_ORIGINS"
)
if allowed_origins:
    if isinstance(allowed_origins, str):
        origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]
    else:
        origins = allowed_origins
    if origins:
        CORS(app, resources={r"/api/*": {"origins": origins}})


def initialize_emulator() -> None:
    """Helper used by tests/CLI."""
    service.ensure_emulator()


# Ensure emulator is ready under WSGI servers
init_app(app)


@app.route("/api/v1/state", methods=["GET"])
def get_state():
    """Return current interpreter state snapshot."""
    return jsonify(service.snapshot_state())


@app.route("/api/v1/screen.png", methods=["GET"])
def get_screen():
    """Return the framebuffer as a PNG image."""
    zoom = request.args.get("zoom", default=1, type=int)
    if zoom is None or not 1 <= zoom <= 32:
        return jsonify({"error": "zoom must be between 1 and 32"}), 400
    return Response(service.capture_screen_png(zoom=zoom), mimetype="image/png")


@app.route("/api/v1/key", methods=["POST"])
def handle_key():
    """Handle keypad input."""
    data = request.get_json(silent=True) or {}
    key = data.get("key")
    if key is None or isinstance(key, bool):
        return jsonify({"error": "Missing key"}), 400

    action = data.get("action", "press")
    try:
        if action == "press":
            value = service.press_key(key)
        elif action == "release":
            value = service.release_key(key)
        else:
            return jsonify({"error": f"Invalid action: {action}"}), 400
    except InvalidKeyError as exc:
        return jsonify({"error": str(exc)}), 400

    verb = "pressed" if action == "press" else "released"
    return jsonify(
        {
            "status": "ok",
            "key": value,
            "message": f"Key 0x{value:X} {verb}",
        }
    )


def _halted_response():
    fault = service.snapshot_state().get("fault")
    return (
        jsonify({"error": "Machine halted; reset required", "fault": fault}),
        409,
    )


@app.route("/api/v1/control", methods=["POST"])
def control_emulator():
    """Control execution (run/pause/step/reset)."""
    data = request.get_json(silent=True) or {}
    command = data.get("command")
    if not command:
        return jsonify({"error": "Missing command"}), 400

    if command == "run":
        if not service.run():
            return _halted_response()
        return jsonify({"status": "running"})
    if command == "pause":
        service.pause()
        return jsonify({"status": "paused"})
    if command == "step":
        state = service.snapshot_state()
        if not state.get("is_running") and not service.step():
            return _halted_response()
        return jsonify({"status": "stepped"})
    if command == "reset":
        service.reset()
        return jsonify({"status": "reset"})

    return jsonify({"error": f"Unknown command: {command}"}), 400


@app.route("/api/v1/program", methods=["POST"])
def upload_program():
    """Replace the program with the raw request body."""
    program = request.get_data()
    if not program:
        return jsonify({"error": "Empty program"}), 400
    try:
        size = service.load_program(program)
    except ProgramLoadError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"status": "loaded", "size": size})


if __name__ == "__main__":
    initialize_emulator()
    print("CHIP-8 interpreter initialized successfully")
    print("Starting web server at http://localhost:8080")
    app.run(debug=True, host="0.0.0.0", port=8080)
