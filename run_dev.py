#!/usr/bin/env python3
"""Development server runner for the Gym Management System."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def setup_environment():
    """Set up the development environment."""
    project_root = Path(__file__).parent
    sys.path.insert(0, str(project_root))

    env_file = project_root / '.env'
    if env_file.exists():
        load_dotenv(env_file)
        print(f"Loaded environment from {env_file}")
    else:
        print(f"No .env file found at {env_file}, using defaults")

    os.environ.setdefault('FLASK_APP', 'gms')
    os.environ.setdefault('FLASK_ENV', 'development')
    os.environ.setdefault('FLASK_DEBUG', '1')


def run_development_server():
    """Run the Flask development server."""
    from gms import create_app

    app = create_app()

    print("\n" + "=" * 60)
    print("Starting Gym Management System Development Server")
    print("=" * 60)
    print(f"Database: {app.config['SQLALCHEMY_DATABASE_URI']}")
    print(f"Email dry run: {app.config['EMAIL_DRY_RUN']} ({app.config['EMAIL_DRY_RUN_PATH']})")
    print("\nAPI available at:")
    print("   http://localhost:5000/api/v1")
    print("\nTo bootstrap an installation, run in another terminal:")
    print("   flask --app gms user create-owner --username owner --email owner@gym.local "
          "--first-name Gym --last-name Owner")
    print("   flask --app gms seed demo")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60)

    app.run(host='0.0.0.0', port=5000, debug=True, use_reloader=True)


def main():
    """Set up and run the development server."""
    print("Gym Management System - Development Setup")
    print("=" * 60)

    setup_environment()

    try:
        run_development_server()
    except KeyboardInterrupt:
        print("\n\nDevelopment server stopped by user")


if __name__ == "__main__":
    main()
