#!/usr/bin/env python3
"""
Startup script for the OAuth connector.

This script initializes and runs the Flask application with configuration
validation.
"""

import sys
from oauth_connector.app import create_app
from oauth_connector.config import ConfigurationError


def main():
    """Main entry point for the application."""
    try:
        app = create_app()

        host = app.config.get('HOST', '127.0.0.1')
        port = app.config.get('PORT', 5000)
        debug = app.config.get('DEBUG', False)

        print("Starting OAuth connector...")
        print(f"Server will be available at: http://{host}:{port}")
        print(f"Debug mode: {'ON' if debug else 'OFF'}")
        print(f"Integrations: {', '.join(app.provider_manager.providers) or 'none'}")
        print("-" * 60)

        app.run(host=host, port=port, debug=debug, use_reloader=debug)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        print("\n1. Copy .env.example to .env and set FLASK_SECRET_KEY")
        print("2. Copy integrations.example.json to integrations.json and fill in your integrations")
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nShutting down OAuth connector...")
        sys.exit(0)


if __name__ == '__main__':
    main()
