#!/usr/bin/env python3
"""Run the CHIP-8 web host."""

import logging

from web.app import app, initialize_emulator

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    # Initialize emulator on startup
    try:
        initialize_emulator()
        print("CHIP-8 interpreter initialized successfully")
    except Exception as e:
        print(f"Failed to initialize interpreter: {e}")
        raise

    # Run Flask app
    print("Starting web server at http://localhost:8080")
    app.run(debug=False, host='127.0.0.1', port=8080)
